"""HTTP client and view state for the interactive map.

``MapInteractions`` turns map gestures (click, drag/drop, search selection,
delete) into calls against the location API. Permission checks here mirror
the server's rules so the UI can refuse early; the server still decides.
Local state is only changed from users the server returned.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from pinmap.services.coordinates import LngLat, format_coordinates, parse_coordinates
from pinmap.services.permissions import Authorizer, PinAction

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20


class MapActionError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class MapUser:
    id: str
    name: str
    email: str
    coordinates: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @property
    def location(self) -> Optional[LngLat]:
        return parse_coordinates(self.coordinates)

    @property
    def pinned(self) -> bool:
        return self.location is not None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "MapUser":
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            email=payload.get("email") or "",
            coordinates=payload.get("coordinates"),
            city=payload.get("city"),
            state=payload.get("state"),
            country=payload.get("country"),
        )


class PinmapClient:
    """Thin wrapper over the REST API; every call sends the bearer credential."""

    def __init__(
        self,
        base_url: str,
        credential: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.credential = credential
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PinmapClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        if self.credential:
            headers["Authorization"] = f"Bearer {self.credential}"
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise MapActionError(f"Could not reach server: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        if response.is_error:
            message = payload.get("message") or response.reason_phrase
            raise MapActionError(message, status_code=response.status_code)
        return payload.get("data") or {}

    def login(self, email: str, password: str) -> MapUser:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.credential = data["token"]
        return MapUser.from_payload(data["user"])

    def verify(self) -> MapUser:
        return MapUser.from_payload(self._request("GET", "/auth/verify")["user"])

    def list_users(self) -> List[MapUser]:
        return [MapUser.from_payload(item) for item in self._request("GET", "/users")["users"]]

    def update_location(
        self,
        user_id: str,
        coordinates: Optional[Sequence[float]],
        city: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
        action: Optional[str] = None,
    ) -> MapUser:
        body: Dict[str, Any] = {
            "userId": user_id,
            "coordinates": format_coordinates(coordinates) if coordinates is not None else None,
        }
        for key, value in (("city", city), ("state", state), ("country", country), ("action", action)):
            if value is not None:
                body[key] = value
        data = self._request("POST", "/location/update", json=body)
        return MapUser.from_payload(data["user"])

    def location_history(self, user_id: str, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        return self._request(
            "GET", f"/location/history/{user_id}", params={"limit": limit, "offset": offset}
        )


@dataclass
class MapInteractions:
    client: PinmapClient
    current_user: MapUser
    authorizer: Authorizer = field(default_factory=Authorizer)
    users: List[MapUser] = field(default_factory=list)
    selected_user: Optional[MapUser] = None
    pending_coordinates: Optional[LngLat] = None
    pending_place: Dict[str, str] = field(default_factory=dict)
    sidebar_open: bool = False
    dialog_open: bool = False

    def refresh(self) -> List[MapUser]:
        self.users = self.client.list_users()
        return self.users

    def find_user(self, user_id: str) -> Optional[MapUser]:
        return next((user for user in self.users if user.id == user_id), None)

    def unpinned_users(self) -> List[MapUser]:
        return [
            user
            for user in self.users
            if not user.pinned and self.authorizer.can_pin(self.current_user, user)
        ]

    def handle_map_click(self, lng_lat: Sequence[float]) -> bool:
        """Open the user picker for a clicked point; False when nobody can be pinned."""
        parsed = parse_coordinates(lng_lat)
        if parsed is None:
            raise MapActionError("Clicked point is outside the valid coordinate range")
        if not self.unpinned_users():
            return False
        self.pending_coordinates = parsed
        self.sidebar_open = True
        return True

    def handle_user_select(self, user: MapUser) -> None:
        self.selected_user = user
        self.dialog_open = True
        self.sidebar_open = False

    def search_select(self, lng_lat: Sequence[float], place: Optional[Dict[str, str]] = None) -> bool:
        """A geocoder result behaves like a click at the result's position."""
        opened = self.handle_map_click(lng_lat)
        if opened and place:
            self.pending_place = dict(place)
        return opened

    def _replace(self, updated: MapUser) -> MapUser:
        self.users = [updated if user.id == updated.id else user for user in self.users]
        return updated

    def _check(self, action: PinAction, target: MapUser) -> None:
        if not self.authorizer.allows(action, self.current_user, target):
            raise MapActionError(f"You can only {action.value} your own pin", status_code=403)

    def confirm_pin(self, user_id: str, lng_lat: Optional[Sequence[float]] = None, **place: str) -> MapUser:
        target = self.find_user(user_id)
        if target is None:
            raise MapActionError("User not found", status_code=404)
        coordinates = lng_lat if lng_lat is not None else self.pending_coordinates
        if coordinates is None:
            raise MapActionError("No location selected")
        self._check(PinAction.pin, target)

        details = {**self.pending_place, **place}
        updated = self.client.update_location(
            user_id,
            coordinates,
            city=details.get("city"),
            state=details.get("state"),
            country=details.get("country"),
            action=PinAction.pin.value,
        )
        self.reset()
        return self._replace(updated)

    def move_pin(self, user_id: str, lng_lat: Sequence[float], **place: str) -> MapUser:
        """Drop handler for a dragged marker."""
        target = self.find_user(user_id)
        if target is None:
            raise MapActionError("User not found", status_code=404)
        self._check(PinAction.move, target)
        updated = self.client.update_location(
            user_id,
            lng_lat,
            city=place.get("city"),
            state=place.get("state"),
            country=place.get("country"),
            action=PinAction.move.value,
        )
        return self._replace(updated)

    def delete_pin(self, user_id: str) -> MapUser:
        target = self.find_user(user_id)
        if target is None:
            raise MapActionError("User not found", status_code=404)
        self._check(PinAction.delete, target)
        updated = self.client.update_location(user_id, None, action=PinAction.delete.value)
        return self._replace(updated)

    def reset(self) -> None:
        self.sidebar_open = False
        self.dialog_open = False
        self.selected_user = None
        self.pending_coordinates = None
        self.pending_place = {}
