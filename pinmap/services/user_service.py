import logging
from datetime import datetime

from sqlalchemy.orm import Session

from pinmap.models.location_update import LocationUpdate
from pinmap.models.user import User
from pinmap.schemas.user import UserUpdate
from pinmap.services.auth_service import create_user_token, hash_password
from pinmap.services.coordinates import is_blank
from pinmap.services.location_service import (
    get_user_or_404,
    record_location,
    require_permission,
    validated_coordinates,
)
from pinmap.services.permissions import Authorizer, PinAction, Requester
from pinmap.utils.errors import Conflict, Forbidden, InvalidInput

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def register_user(db: Session, name: str, email: str, password: str) -> tuple[User, str]:
    """Create the account and its session token; nothing is committed if either fails."""
    if find_by_email(db, email):
        raise Conflict("User with this email already exists")

    user = User(name=name, email=email, password=hash_password(password))
    db.add(user)
    try:
        db.flush()
        token = create_user_token(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Registered user id=%s", user.id)
    return user, token


def _require_self_or_admin(authorizer: Authorizer, requester: Requester, user: User, verb: str) -> None:
    if not authorizer.can_delete(requester, user):
        raise Forbidden(f"You do not have permission to {verb} this user")


def update_user(
    db: Session,
    authorizer: Authorizer,
    requester: Requester,
    user_id: str,
    update: UserUpdate,
) -> User:
    fields = update.provided_fields()
    if not fields:
        raise InvalidInput("No valid fields to update")

    user = get_user_or_404(db, user_id)
    _require_self_or_admin(authorizer, requester, user, "update")

    new_email = fields.get("email")
    if new_email is not None and new_email != user.email:
        taken = db.query(User).filter(User.email == new_email, User.id != user.id).first()
        if taken:
            raise Conflict("Email already taken by another user")

    for field in ("name", "email"):
        if field in fields:
            if fields[field] is None:
                raise InvalidInput(f"{field} cannot be null")
            setattr(user, field, fields[field])

    try:
        if "coordinates" in fields:
            raw = fields["coordinates"]
            if is_blank(raw):
                require_permission(authorizer, PinAction.delete, requester, user)
                user.coordinates = None
                for field in ("city", "state", "country"):
                    setattr(user, field, fields.get(field))
            else:
                action = PinAction.move if user.coordinates else PinAction.pin
                require_permission(authorizer, action, requester, user)
                record_location(
                    db,
                    user,
                    validated_coordinates(raw),
                    fields.get("city"),
                    fields.get("state"),
                    fields.get("country"),
                )
        else:
            for field in ("city", "state", "country"):
                if field in fields:
                    setattr(user, field, fields[field])

        user.updated_at = datetime.utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Updated user id=%s fields=%s", user.id, sorted(fields))
    return user


def delete_user(db: Session, authorizer: Authorizer, requester: Requester, user_id: str) -> None:
    user = get_user_or_404(db, user_id)
    _require_self_or_admin(authorizer, requester, user, "delete")
    try:
        removed = (
            db.query(LocationUpdate)
            .filter(LocationUpdate.user_id == user.id)
            .delete(synchronize_session=False)
        )
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted user id=%s with %s history rows", user_id, removed)
