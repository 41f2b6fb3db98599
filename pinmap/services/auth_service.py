from datetime import datetime, timedelta

from jose import jwt
from passlib.context import CryptContext

from pinmap.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not configured")
    to_encode = dict(data)
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.utcnow()
    to_encode.update({"iat": now, "exp": now + timedelta(minutes=minutes), "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def create_user_token(user) -> str:
    return create_access_token({"sub": user.id, "email": user.email, "name": user.name})


def decode_access_token(token: str) -> dict:
    """Decode and verify ``token``; raises ``jose.JWTError`` when it is not valid."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
