"""
WasteCollect Server - Auth API
Login, household self-registration and the caller-identity dependencies
"""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.database import get_db
from app.models import User, Role
from app.schemas import LoginRequest, LoginResponse, HouseholdRegisterRequest, UserResponse, UserUpdate
from app.core import create_access_token, verify_access_token, settings
from app.core.exceptions import AuthorizationError
from app.services.caller import Caller
from app.services import users as user_service

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer()
limiter = Limiter(key_func=get_remote_address)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency resolving the bearer token to an enabled account"""
    payload = verify_access_token(credentials.credentials)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    result = await db.execute(
        select(User).where(User.id == payload.get("sub"))
    )
    user = result.scalar_one_or_none()

    if not user or not user.enabled or user.locked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return user


async def get_current_caller(user: User = Depends(get_current_user)) -> Caller:
    return Caller(user_id=user.id, role=Role(user.role))


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold one of `roles`"""
    async def dependency(caller: Caller = Depends(get_current_caller)) -> Caller:
        if caller.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(f"Operation requires role: {allowed}")
        return caller
    return dependency


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchanges e-mail and password for a bearer token"""
    user = await user_service.authenticate(db, data.email, data.password)

    if not user:
        existing = await user_service.get_user_by_email(db, data.email)
        if existing and (not existing.enabled or existing.locked):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled"
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    user.last_login_at = datetime.utcnow()
    await db.flush()
    await db.refresh(user)

    access_token = create_access_token(data={"sub": user.id, "role": user.role})

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user=user.to_dict()
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_household(data: HouseholdRegisterRequest, db: AsyncSession = Depends(get_db)):
    """Household self-registration"""
    user = await user_service.register_household(db, data)
    return user.to_dict()


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user.to_dict()


@router.put("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    user = await user_service.update_user(db, caller, caller.user_id, data)
    return user.to_dict()
