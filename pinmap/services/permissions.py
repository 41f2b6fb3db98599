"""Admin-or-self authorization for pin, move and delete.

The rules are pure so the map client can evaluate the same functions for UI
gating. Only the server-side evaluation is authoritative.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Protocol


class PinAction(str, Enum):
    pin = "pin"
    move = "move"
    delete = "delete"


class _HasIdentity(Protocol):
    id: object
    email: Optional[str]


@dataclass(frozen=True)
class Requester:
    """Who is calling: a signed-in user or the integration API key."""

    id: Optional[str]
    email: Optional[str] = None
    name: Optional[str] = None
    is_service: bool = False


class Authorizer:
    def __init__(self, admin_emails: Iterable[str] = ()):
        self.admin_emails = frozenset(
            email.strip() for email in admin_emails if email and email.strip()
        )

    def is_admin(self, requester: _HasIdentity) -> bool:
        email = getattr(requester, "email", None)
        if not email:
            return False
        return email in self.admin_emails

    def permission_level(self, requester: _HasIdentity) -> str:
        return "admin" if self.is_admin(requester) else "user"

    def _admin_or_self(self, requester: _HasIdentity, target: _HasIdentity) -> bool:
        if getattr(requester, "is_service", False):
            return True
        if self.is_admin(requester):
            return True
        requester_id = getattr(requester, "id", None)
        return requester_id is not None and requester_id == getattr(target, "id", None)

    def can_pin(self, requester: _HasIdentity, target: _HasIdentity) -> bool:
        return self._admin_or_self(requester, target)

    def can_move(self, requester: _HasIdentity, target: _HasIdentity) -> bool:
        return self._admin_or_self(requester, target)

    def can_delete(self, requester: _HasIdentity, target: _HasIdentity) -> bool:
        return self._admin_or_self(requester, target)

    def can_move_any(self, requester: _HasIdentity) -> bool:
        return self.is_admin(requester)

    def allows(self, action: PinAction, requester: _HasIdentity, target: _HasIdentity) -> bool:
        checks = {
            PinAction.pin: self.can_pin,
            PinAction.move: self.can_move,
            PinAction.delete: self.can_delete,
        }
        return checks[PinAction(action)](requester, target)
