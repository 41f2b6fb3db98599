from datetime import datetime
from typing import Annotated

from email_validator import validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, computed_field

from pinmap.services.coordinates import parse_coordinates


def _check_email(value: str) -> str:
    # Validate only; the address is stored exactly as sent
    validate_email(value, check_deliverability=False)
    return value


Email = Annotated[str, AfterValidator(_check_email)]


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: Email
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=3)
    action: str | None = None  # legacy clients send "login"


class UserUpdate(BaseModel):
    """Partial profile update; a field is applied only when it was sent."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: Email | None = None
    coordinates: str | list[float] | None = None
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)

    def provided_fields(self) -> dict:
        return self.model_dump(exclude_unset=True)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    coordinates: str | None
    city: str | None
    state: str | None
    country: str | None
    created_at: datetime | None
    updated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def location(self) -> list[float] | None:
        parsed = parse_coordinates(self.coordinates)
        return list(parsed) if parsed else None

    @computed_field
    @property
    def pinned(self) -> bool:
        return self.location is not None


def user_payload(user) -> dict:
    return UserResponse.model_validate(user).model_dump()
