"""
WasteCollect Server - Domain Errors
Typed errors raised by the services and translated to HTTP in app.main
"""
from typing import Optional


class WasteCollectError(Exception):
    """Base for every error the services raise on purpose"""
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.code}


class NotFoundError(WasteCollectError):
    """Referenced entity does not exist"""
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, key: Optional[str] = None):
        message = f"{entity} not found" if key is None else f"{entity} not found: {key}"
        super().__init__(message)
        self.entity = entity
        self.key = key


class ValidationError(WasteCollectError):
    """Malformed input, duplicated unique value, duplicated rating"""
    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class InvalidStateError(WasteCollectError):
    """Operation is not allowed from the entity's current state"""
    status_code = 409
    code = "invalid_state"


class AuthorizationError(WasteCollectError):
    """Caller lacks the role or is not the party the operation requires"""
    status_code = 403
    code = "forbidden"
