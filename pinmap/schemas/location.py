from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LocationUpdateRequest(BaseModel):
    user_id: str | None = None
    userId: str | None = None
    coordinates: str | list[float] | None = None
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    action: Literal["pin", "move", "delete", "pin_location"] | None = None

    # Map clients also send name/timestamp; they are not processed
    model_config = ConfigDict(extra="ignore")

    @property
    def target_user_id(self) -> str | None:
        return self.user_id or self.userId


class LocationUpdateResponse(BaseModel):
    id: int
    user_id: str
    coordinates: str
    city: str | None
    state: str | None
    country: str | None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class RecentLocationResponse(LocationUpdateResponse):
    user_name: str | None = None
    user_email: str | None = None
