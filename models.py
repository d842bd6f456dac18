from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, UniqueConstraint

class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str = ""
    price_per_night: float = 0.0
    rating: float = Field(default=0.0, index=True)
    image_url: Optional[str] = None


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        # One booking per room per calendar day
        UniqueConstraint("room_id", "booking_date", name="unique_room_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="rooms.id", index=True)
    user_email: str = Field(index=True)
    user_name: str = "Anonymous"
    booking_date: date = Field(index=True)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class Review(SQLModel, table=True):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("room_id", "user_email", name="unique_review_per_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="rooms.id", index=True)
    user_email: str
    user_name: str = "Anonymous"
    rating: int
    comment: str = ""
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
