"""
WasteCollect Server - Caller Identity
Every service operation receives the acting user explicitly
"""
from dataclasses import dataclass

from app.core.exceptions import AuthorizationError
from app.models.enums import Role


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require(self, *roles: Role) -> None:
        if self.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(f"Operation requires role: {allowed}")
