"""
WasteCollect Server - Security
Password hashing (bcrypt) and session tokens (JWT)
"""
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
import bcrypt

from .config import settings


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a password against its bcrypt hash"""
    if not hashed_password:
        return False
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Returns the bcrypt hash of a password"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issues a JWT for an authenticated user; `data` must carry `sub` and `role`"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> Optional[dict]:
    """Decodes a JWT, None when invalid or expired"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def generate_transaction_reference() -> str:
    """
    Payment reference in the format TX-YYYYMMDD-XXXXXXXX
    """
    chars = string.ascii_uppercase + string.digits
    suffix = ''.join(secrets.choice(chars) for _ in range(8))
    return f"TX-{datetime.utcnow():%Y%m%d}-{suffix}"


def generate_collector_code() -> str:
    """Badge code for new collectors, e.g. COL-7KQ2MZ"""
    chars = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'  # no I, O, 0, 1
    return "COL-" + ''.join(secrets.choice(chars) for _ in range(6))
