from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pinmap.database import get_db
from pinmap.schemas.location import LocationUpdateRequest, LocationUpdateResponse, RecentLocationResponse
from pinmap.schemas.user import user_payload
from pinmap.services import location_service
from pinmap.services.auth_middleware import get_authorizer, get_requester
from pinmap.services.permissions import Authorizer, Requester
from pinmap.utils.response import create_response, handle_exception

router = APIRouter(prefix="/location", tags=["Location"], dependencies=[Depends(get_requester)])


@router.post("/update")
def update_location(
    body: LocationUpdateRequest,
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    authorizer: Authorizer = Depends(get_authorizer),
):
    try:
        user = location_service.update_location(
            db,
            authorizer,
            requester,
            body.target_user_id,
            body.coordinates,
            city=body.city,
            state=body.state,
            country=body.country,
            action=body.action,
        )
        message = "Location updated successfully" if user.coordinates else "Location cleared successfully"
        return create_response(
            message=message,
            data={"user": user_payload(user)},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/history/{user_id}")
def location_history(
    user_id: str,
    limit: int = Query(location_service.DEFAULT_HISTORY_LIMIT, ge=0),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    try:
        page = location_service.get_location_history(db, user_id, limit=limit, offset=offset)
        locations = [LocationUpdateResponse.model_validate(entry).model_dump() for entry in page["locations"]]
        return create_response(
            message="Location history fetched successfully",
            data={"locations": locations, "pagination": page["pagination"]},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/history/{user_id}")
def clear_history(
    user_id: str,
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    authorizer: Authorizer = Depends(get_authorizer),
):
    try:
        deleted = location_service.clear_location_history(db, authorizer, requester, user_id)
        return create_response(
            message=f"Deleted {deleted} location records",
            data={"deletedCount": deleted},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/all")
def all_locations(
    limit: int = Query(location_service.DEFAULT_RECENT_LIMIT, ge=0),
    db: Session = Depends(get_db),
):
    try:
        locations = [
            RecentLocationResponse.model_validate(row).model_dump()
            for row in location_service.recent_locations(db, limit=limit)
        ]
        return create_response(
            message="Recent locations fetched successfully",
            data={"count": len(locations), "locations": locations},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
