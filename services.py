"""Request-scoped services: look up, check the booking rules, write."""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from errors import Conflict, NotFound
from models import Booking, Review, Room
from validator import BookingValidator, DateInput, ReviewGatekeeper, parse_booking_date

logger = logging.getLogger(__name__)

TOP_RATED_THRESHOLD = 4.5
TOP_RATED_LIMIT = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoomService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def top_rated(self) -> List[Room]:
        statement = (
            select(Room)
            .where(Room.rating > TOP_RATED_THRESHOLD)
            .order_by(Room.rating.desc())
            .limit(TOP_RATED_LIMIT)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_rooms(self) -> List[Room]:
        result = await self.session.execute(select(Room).order_by(Room.id))
        return list(result.scalars().all())

    async def get_room(self, room_id: int) -> Room:
        room = await self.session.get(Room, room_id)
        if room is None:
            raise NotFound(f"Room {room_id} not found")
        return room


class BookingService:
    def __init__(self, session: AsyncSession, validator: Optional[BookingValidator] = None):
        self.session = session
        self.validator = validator or BookingValidator()

    async def _bookings_on(self, room_id: int, day: date) -> List[Booking]:
        statement = select(Booking).where(
            Booking.room_id == room_id, Booking.booking_date == day
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def _commit(self, booking: Booking) -> Booking:
        room_id, day = booking.room_id, booking.booking_date
        try:
            self.session.add(booking)
            await self.session.commit()
        except IntegrityError:
            # A concurrent request took the same room/date after our check
            await self.session.rollback()
            logger.warning(
                "Unique constraint rejected booking for room %s on %s", room_id, day
            )
            raise Conflict("Room is already booked for this date")
        await self.session.refresh(booking)
        return booking

    async def create(
        self,
        room_id: Optional[int],
        user_email: Optional[str],
        user_name: Optional[str],
        booking_date: DateInput,
    ) -> Booking:
        room = await self.session.get(Room, room_id) if room_id is not None else None
        existing: List[Booking] = []
        if room is not None:
            existing = await self._bookings_on(room_id, parse_booking_date(booking_date))

        booking = self.validator.create(
            room, room_id, user_email, user_name, booking_date, existing, utcnow()
        )
        booking = await self._commit(booking)
        logger.info("Booked room %s on %s for %s", booking.room_id, booking.booking_date, booking.user_email)
        return booking

    async def list(
        self, room_id: Optional[int] = None, user_email: Optional[str] = None
    ) -> List[Booking]:
        statement = select(Booking)
        if room_id is not None:
            statement = statement.where(Booking.room_id == room_id)
        if user_email:
            statement = statement.where(Booking.user_email == user_email)
        result = await self.session.execute(statement.order_by(Booking.booking_date))
        return list(result.scalars().all())

    async def reschedule(
        self, booking_id: int, new_room_id: Optional[int], new_date: DateInput
    ) -> Booking:
        room = await self.session.get(Room, new_room_id) if new_room_id is not None else None
        siblings: List[Booking] = []
        if room is not None and new_date:
            siblings = await self._bookings_on(new_room_id, parse_booking_date(new_date))
        booking = await self.session.get(Booking, booking_id)

        booking = self.validator.reschedule(
            booking_id, booking, room, new_room_id, new_date, siblings
        )
        booking = await self._commit(booking)
        logger.info("Moved booking %s to room %s on %s", booking.id, booking.room_id, booking.booking_date)
        return booking

    async def cancel(self, booking_id: int, today: date) -> None:
        booking = await self.session.get(Booking, booking_id)
        booking = self.validator.cancel(booking, today)

        await self.session.delete(booking)
        await self.session.commit()
        logger.info("Cancelled booking %s", booking_id)


class ReviewService:
    def __init__(self, session: AsyncSession, gatekeeper: Optional[ReviewGatekeeper] = None):
        self.session = session
        self.gatekeeper = gatekeeper or ReviewGatekeeper()

    async def list(self, room_id: Optional[int] = None) -> List[Review]:
        statement = select(Review)
        if room_id is not None:
            statement = statement.where(Review.room_id == room_id)
        result = await self.session.execute(statement.order_by(Review.created_at.desc()))
        return list(result.scalars().all())

    async def _exists(self, model, room_id: int, user_email: str) -> bool:
        statement = (
            select(model.id)
            .where(model.room_id == room_id, model.user_email == user_email)
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.first() is not None

    async def submit(
        self,
        room_id: Optional[int],
        user_email: Optional[str],
        user_name: Optional[str],
        rating: Optional[int],
        comment: Optional[str],
    ) -> Review:
        room = await self.session.get(Room, room_id) if room_id is not None else None
        holds_booking = already_reviewed = False
        if room is not None and user_email:
            holds_booking = await self._exists(Booking, room_id, user_email)
            already_reviewed = await self._exists(Review, room_id, user_email)

        review = self.gatekeeper.submit(
            room, room_id, user_email, user_name, rating, comment,
            holds_booking, already_reviewed, utcnow(),
        )
        try:
            self.session.add(review)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise Conflict("You have already reviewed this room")
        await self.session.refresh(review)
        logger.info("Review %s posted for room %s", review.id, review.room_id)
        return review
