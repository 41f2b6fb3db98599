import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from pinmap.models.location_update import LocationUpdate
from pinmap.models.user import User
from pinmap.services.coordinates import RawCoordinates, is_blank, normalize_coordinates
from pinmap.services.permissions import Authorizer, PinAction, Requester
from pinmap.utils.errors import Forbidden, InvalidInput, NotFound

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
DEFAULT_RECENT_LIMIT = 100


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def require_permission(
    authorizer: Authorizer, action: PinAction, requester: Requester, target: User
) -> None:
    if not authorizer.allows(action, requester, target):
        logger.info(
            "Denied %s for requester=%s on user=%s", action.value, requester.id, target.id
        )
        raise Forbidden(f"You do not have permission to {action.value} this user's location")


def validated_coordinates(raw: RawCoordinates) -> str:
    coordinates = normalize_coordinates(raw)
    if coordinates is None:
        raise InvalidInput(
            "Invalid coordinates: expected '<lng>, <lat>' with longitude in [-180, 180] "
            "and latitude in [-90, 90]"
        )
    return coordinates


def record_location(
    db: Session,
    user: User,
    coordinates: str,
    city: Optional[str] = None,
    state: Optional[str] = None,
    country: Optional[str] = None,
) -> LocationUpdate:
    """Stage the current-location change and its history row; the caller commits."""
    now = datetime.utcnow()
    user.coordinates = coordinates
    user.city = city or ""
    user.state = state or ""
    user.country = country or ""
    user.updated_at = now

    entry = LocationUpdate(
        user_id=user.id,
        coordinates=coordinates,
        city=user.city,
        state=user.state,
        country=user.country,
        timestamp=now,
    )
    db.add(entry)
    return entry


def resolve_action(user: User, raw: RawCoordinates, requested: Optional[str] = None) -> PinAction:
    if requested == PinAction.delete.value:
        if not is_blank(raw):
            raise InvalidInput("Coordinates must be empty for a delete action")
        return PinAction.delete
    if is_blank(raw):
        return PinAction.delete
    return PinAction.move if user.coordinates else PinAction.pin


def update_location(
    db: Session,
    authorizer: Authorizer,
    requester: Requester,
    target_user_id: Optional[str],
    coordinates: RawCoordinates,
    city: Optional[str] = None,
    state: Optional[str] = None,
    country: Optional[str] = None,
    action: Optional[str] = None,
) -> User:
    """Pin, move or clear ``target_user_id``'s current location.

    Pins and moves update the user row and append a history row in one
    commit. Clearing leaves the history untouched.
    """
    user_id = target_user_id or requester.id
    if not user_id:
        raise InvalidInput("User ID is required")

    user = get_user_or_404(db, user_id)
    resolved = resolve_action(user, coordinates, action)
    require_permission(authorizer, resolved, requester, user)

    try:
        if resolved is PinAction.delete:
            user.coordinates = None
            user.city = None
            user.state = None
            user.country = None
            user.updated_at = datetime.utcnow()
        else:
            record_location(db, user, validated_coordinates(coordinates), city, state, country)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info(
        "Location %s for user=%s by requester=%s coordinates=%s",
        resolved.value,
        user.id,
        requester.id or "api-key",
        user.coordinates,
    )
    return user


def get_location_history(db: Session, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0) -> dict:
    get_user_or_404(db, user_id)
    base_query = db.query(LocationUpdate).filter(LocationUpdate.user_id == user_id)
    total = base_query.count()
    locations = (
        base_query.order_by(LocationUpdate.timestamp.desc(), LocationUpdate.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "locations": locations,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": total > offset + limit,
        },
    }


def list_all_history(db: Session, user_id: str) -> list[LocationUpdate]:
    get_user_or_404(db, user_id)
    return (
        db.query(LocationUpdate)
        .filter(LocationUpdate.user_id == user_id)
        .order_by(LocationUpdate.timestamp.desc(), LocationUpdate.id.desc())
        .all()
    )


def clear_location_history(db: Session, authorizer: Authorizer, requester: Requester, user_id: str) -> int:
    user = get_user_or_404(db, user_id)
    require_permission(authorizer, PinAction.delete, requester, user)
    try:
        deleted = (
            db.query(LocationUpdate)
            .filter(LocationUpdate.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Cleared %s history rows for user=%s", deleted, user_id)
    return deleted


def recent_locations(db: Session, limit: int = DEFAULT_RECENT_LIMIT) -> list[dict]:
    rows = (
        db.query(LocationUpdate, User.name, User.email)
        .join(User, LocationUpdate.user_id == User.id)
        .order_by(LocationUpdate.timestamp.desc(), LocationUpdate.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": entry.id,
            "user_id": entry.user_id,
            "coordinates": entry.coordinates,
            "city": entry.city,
            "state": entry.state,
            "country": entry.country,
            "timestamp": entry.timestamp,
            "user_name": name,
            "user_email": email,
        }
        for entry, name, email in rows
    ]
