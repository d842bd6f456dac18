from datetime import date

import pytest

from errors import Conflict, NotFound
from models import Room
from services import BookingService, RoomService
from validator import BookingValidator


class StaleReadValidator(BookingValidator):
    """Behaves as if the conflict check ran before a concurrent insert landed."""

    def create(self, room, room_id, user_email, user_name, booking_date, existing, now):
        return super().create(room, room_id, user_email, user_name, booking_date, [], now)


@pytest.mark.asyncio
async def test_unique_constraint_closes_check_then_insert_race(app, rooms):
    room_id = rooms[0].id
    async with app.state.database.session() as session:
        service = BookingService(session, validator=StaleReadValidator())
        await service.create(room_id, "first@example.com", None, "2024-06-10")

        with pytest.raises(Conflict):
            await service.create(room_id, "second@example.com", None, "2024-06-10T18:00")

    async with app.state.database.session() as session:
        bookings = await BookingService(session).list(room_id=room_id)
    assert [b.user_email for b in bookings] == ["first@example.com"]
    assert bookings[0].booking_date == date(2024, 6, 10)


@pytest.mark.asyncio
async def test_top_rated_is_capped(app):
    async with app.state.database.session() as session:
        session.add_all(
            Room(name=f"Suite {i}", rating=4.6 + i / 100) for i in range(8)
        )
        session.add(Room(name="Budget", rating=3.0))
        await session.commit()

        top = await RoomService(session).top_rated()

    assert len(top) == 6
    assert top[0].name == "Suite 7"
    assert all(room.rating > 4.5 for room in top)


@pytest.mark.asyncio
async def test_get_room_missing(app):
    async with app.state.database.session() as session:
        with pytest.raises(NotFound):
            await RoomService(session).get_room(42)


class StaleRescheduleValidator(BookingValidator):
    def reschedule(self, booking_id, booking, room, new_room_id, new_date, siblings):
        return super().reschedule(booking_id, booking, room, new_room_id, new_date, [])


@pytest.mark.asyncio
async def test_unique_constraint_guards_reschedule(app, rooms):
    room_id = rooms[0].id
    async with app.state.database.session() as session:
        service = BookingService(session, validator=StaleRescheduleValidator())
        mine = await service.create(room_id, "first@example.com", None, "2024-06-10")
        await service.create(room_id, "second@example.com", None, "2024-06-12")

        with pytest.raises(Conflict):
            await service.reschedule(mine.id, room_id, "2024-06-12")

    async with app.state.database.session() as session:
        bookings = await BookingService(session).list(room_id=room_id, user_email="first@example.com")
    assert [b.booking_date for b in bookings] == [date(2024, 6, 10)]
