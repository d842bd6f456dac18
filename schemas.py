from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Clients talk camelCase (roomId, userEmail); Python stays snake_case
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class RoomRead(CamelModel):
    id: int
    name: str
    description: str
    price_per_night: float
    rating: float
    image_url: Optional[str]


class BookingCreate(CamelModel):
    room_id: Optional[int] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    # Kept as text so a bad date is reported by the booking rules, not as a 422
    date: Optional[str] = None


class BookingUpdate(CamelModel):
    room_id: Optional[int] = None
    date: Optional[str] = None


class BookingRead(CamelModel):
    id: int
    room_id: int
    user_email: str
    user_name: str
    booking_date: date = Field(serialization_alias="date")
    created_at: datetime


class ReviewCreate(CamelModel):
    room_id: Optional[int] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class ReviewRead(CamelModel):
    id: int
    room_id: int
    user_email: str
    user_name: str
    rating: int
    comment: str
    created_at: datetime


class TokenRequest(CamelModel):
    email: str


class TokenResponse(CamelModel):
    token: str


class Message(CamelModel):
    message: str
