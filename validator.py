"""Booking and review rules. Pure functions of the room, sibling records and the date."""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from errors import Conflict, Forbidden, InvalidInput, NotFound
from models import Booking, Review, Room

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "Anonymous"
CANCELLATION_LEAD = timedelta(days=1)
MIN_RATING = 1
MAX_RATING = 5

DateInput = Union[date, datetime, str, None]


def parse_booking_date(value: DateInput) -> date:
    """Reduce ``value`` to a calendar day, dropping any time-of-day."""
    if value is None or value == "":
        raise InvalidInput("Booking date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        # fromisoformat only learned the "Z" suffix in 3.11
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidInput(f"Invalid booking date: {value!r}")


class BookingValidator:
    """Decides whether a booking may be created, moved or cancelled."""

    def create(
        self,
        room: Optional[Room],
        room_id: Optional[int],
        user_email: Optional[str],
        user_name: Optional[str],
        booking_date: DateInput,
        existing: Iterable[Booking],
        now: datetime,
    ) -> Booking:
        if room_id is None:
            raise InvalidInput("Room id is required")
        if not user_email:
            raise InvalidInput("User email is required")
        if room is None:
            raise NotFound(f"Room {room_id} not found")
        day = parse_booking_date(booking_date)

        for other in existing:
            if other.room_id == room_id and other.booking_date == day:
                logger.info("Room %s already booked on %s", room_id, day)
                raise Conflict("Room is already booked for this date")

        return Booking(
            room_id=room_id,
            user_email=user_email,
            user_name=user_name or DEFAULT_USER_NAME,
            booking_date=day,
            created_at=now,
        )

    def reschedule(
        self,
        booking_id: int,
        booking: Optional[Booking],
        room: Optional[Room],
        new_room_id: Optional[int],
        new_date: DateInput,
        siblings: Iterable[Booking],
    ) -> Booking:
        if new_room_id is None or new_date is None or new_date == "":
            raise InvalidInput("Both room id and date are required")
        day = parse_booking_date(new_date)
        if room is None:
            raise NotFound(f"Room {new_room_id} not found")

        for other in siblings:
            if (
                other.id != booking_id
                and other.room_id == new_room_id
                and other.booking_date == day
            ):
                raise Conflict("Room is already booked for this date")

        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        if booking.room_id == new_room_id and booking.booking_date == day:
            raise NotFound("Booking not found or no changes made")

        booking.room_id = new_room_id
        booking.booking_date = day
        return booking

    def cancel(self, booking: Optional[Booking], today: date) -> Booking:
        if booking is None:
            raise NotFound("Booking not found")

        latest_cancellation_date = booking.booking_date - CANCELLATION_LEAD
        if today > latest_cancellation_date:
            logger.info(
                "Cancellation of booking %s refused: %s is past %s",
                booking.id, today, latest_cancellation_date,
            )
            raise Forbidden("Cancellation period has expired")
        return booking


class ReviewGatekeeper:
    """Only guests who booked a room may review it, and only once."""

    def submit(
        self,
        room: Optional[Room],
        room_id: Optional[int],
        user_email: Optional[str],
        user_name: Optional[str],
        rating: Optional[int],
        comment: Optional[str],
        holds_booking: bool,
        already_reviewed: bool,
        now: datetime,
    ) -> Review:
        if room_id is None or not user_email:
            raise InvalidInput("Room id and user email are required")
        if rating is None or not MIN_RATING <= rating <= MAX_RATING:
            raise InvalidInput(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        if room is None:
            raise NotFound(f"Room {room_id} not found")
        if not holds_booking:
            raise Forbidden("You can only review rooms you have booked")
        if already_reviewed:
            raise Conflict("You have already reviewed this room")

        return Review(
            room_id=room_id,
            user_email=user_email,
            user_name=user_name or DEFAULT_USER_NAME,
            rating=rating,
            comment=comment or "",
            created_at=now,
        )
