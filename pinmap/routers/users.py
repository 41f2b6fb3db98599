from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pinmap.database import get_db
from pinmap.schemas.location import LocationUpdateResponse
from pinmap.schemas.user import UserUpdate, user_payload
from pinmap.services import location_service, user_service
from pinmap.services.auth_middleware import get_authorizer, get_requester
from pinmap.services.permissions import Authorizer, Requester
from pinmap.utils.response import create_response, handle_exception

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(get_requester)])


@router.get("")
def list_users(db: Session = Depends(get_db)):
    try:
        payload = [user_payload(user) for user in user_service.list_users(db)]
        return create_response(
            message="Users fetched successfully",
            data={"count": len(payload), "users": payload},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/{user_id}")
def get_user(user_id: str, db: Session = Depends(get_db)):
    try:
        user = location_service.get_user_or_404(db, user_id)
        return create_response(
            message="User fetched successfully",
            data={"user": user_payload(user)},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/{user_id}")
def update_user(
    user_id: str,
    body: UserUpdate,
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    authorizer: Authorizer = Depends(get_authorizer),
):
    try:
        user = user_service.update_user(db, authorizer, requester, user_id, body)
        return create_response(
            message="User updated successfully",
            data={"user": user_payload(user)},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    authorizer: Authorizer = Depends(get_authorizer),
):
    try:
        user_service.delete_user(db, authorizer, requester, user_id)
        return create_response(
            message="User deleted successfully",
            data={"deleted": True, "user_id": user_id},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/{user_id}/locations")
def user_locations(user_id: str, db: Session = Depends(get_db)):
    try:
        locations = [
            LocationUpdateResponse.model_validate(entry).model_dump()
            for entry in location_service.list_all_history(db, user_id)
        ]
        return create_response(
            message="Location history fetched successfully",
            data={"count": len(locations), "locations": locations},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
