import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pinmap.database import get_db
from pinmap.models.user import User
from pinmap.schemas.user import LoginRequest, RegisterRequest, user_payload
from pinmap.services.auth_middleware import get_authorizer, get_requester, get_session_user
from pinmap.services.auth_service import create_user_token, verify_password
from pinmap.services.permissions import Authorizer, Requester
from pinmap.services.user_service import find_by_email, register_user
from pinmap.utils.errors import Unauthorized
from pinmap.utils.response import create_response, handle_exception

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


@router.post("/register")
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user, token = register_user(db, body.name, body.email, body.password)
        return create_response(
            message="User registered successfully",
            data={"user": user_payload(user), "token": token},
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = find_by_email(db, body.email)
        if not user or not verify_password(body.password, user.password):
            logger.info("Failed login attempt for %s", body.email)
            raise Unauthorized("Invalid email or password")

        token = create_user_token(user)
        return create_response(
            message="Login successful",
            data={"user": user_payload(user), "token": token},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/verify")
def verify(current_user: User = Depends(get_session_user)):
    try:
        return create_response(
            message="Token is valid",
            data={"user": user_payload(current_user)},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/permissions")
def permissions(
    requester: Requester = Depends(get_requester),
    authorizer: Authorizer = Depends(get_authorizer),
):
    try:
        level = "admin" if requester.is_service else authorizer.permission_level(requester)
        return create_response(
            message="Permissions fetched successfully",
            data={
                "user_id": requester.id,
                "level": level,
                "can_move_any_pin": requester.is_service or authorizer.can_move_any(requester),
            },
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
