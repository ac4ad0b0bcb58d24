from .config import settings, get_settings
from .security import (
    create_access_token,
    verify_access_token,
    verify_password,
    get_password_hash,
    generate_transaction_reference,
    generate_collector_code
)
from .exceptions import (
    WasteCollectError,
    NotFoundError,
    ValidationError,
    InvalidStateError,
    AuthorizationError
)

__all__ = [
    "settings",
    "get_settings",
    "create_access_token",
    "verify_access_token",
    "verify_password",
    "get_password_hash",
    "generate_transaction_reference",
    "generate_collector_code",
    "WasteCollectError",
    "NotFoundError",
    "ValidationError",
    "InvalidStateError",
    "AuthorizationError"
]
