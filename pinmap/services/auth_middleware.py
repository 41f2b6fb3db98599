"""Bearer credential resolution.

Two strategies share the ``Authorization: Bearer`` header: the static
integration API key and signed session tokens. They are tried in that order
and the first one that accepts the credential produces the ``Requester``.
"""
import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from pinmap.config import settings
from pinmap.database import get_db
from pinmap.models.user import User
from pinmap.services.auth_service import decode_access_token
from pinmap.services.permissions import Authorizer, Requester

logger = logging.getLogger(__name__)

SERVICE_REQUESTER = Requester(id=None, email=None, name="api-key", is_service=True)


class ApiKeyStrategy:
    name = "api_key"

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def authenticate(self, credential: str, db: Session) -> Optional[Requester]:
        if not self.api_key:
            return None
        if hmac.compare_digest(credential.encode(), self.api_key.encode()):
            return SERVICE_REQUESTER
        return None


class SessionTokenStrategy:
    name = "session_token"

    def decode(self, credential: str) -> Optional[dict]:
        try:
            payload = decode_access_token(credential)
        except JWTError:
            return None
        if not payload.get("sub") or (payload.get("type") or "access") != "access":
            return None
        return payload

    def load_user(self, payload: dict, db: Session) -> User:
        user = db.query(User).filter(User.id == payload["sub"]).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    def authenticate(self, credential: str, db: Session) -> Optional[Requester]:
        payload = self.decode(credential)
        if payload is None:
            return None
        user = self.load_user(payload, db)
        return Requester(id=user.id, email=user.email, name=user.name)


session_token_strategy = SessionTokenStrategy()


def get_credential_strategies() -> list:
    return [ApiKeyStrategy(settings.API_AUTH_TOKEN), session_token_strategy]


def get_authorizer() -> Authorizer:
    return Authorizer(settings.ADMIN_EMAILS)


def _bearer_credential(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if not credentials or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    return credentials.credentials


def get_requester(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db),
    strategies: list = Depends(get_credential_strategies),
) -> Requester:
    credential = _bearer_credential(credentials)
    for strategy in strategies:
        requester = strategy.authenticate(credential, db)
        if requester is not None:
            return requester

    logger.info("Rejected bearer credential: no strategy accepted it")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


def get_session_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve a session token only; the API key does not identify a user."""
    credential = _bearer_credential(credentials)
    payload = session_token_strategy.decode(credential)
    if payload is None:
        if ApiKeyStrategy(settings.API_AUTH_TOKEN).authenticate(credential, db) is not None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="API key does not identify a user session",
            )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return session_token_strategy.load_user(payload, db)
