import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auth import Identity, JWTIdentityVerifier, issue_token, require_identity
from database import Database, get_session
from errors import BookingError, Forbidden, InvalidInput
from logging_config import setup_logging
from schemas import (
    BookingCreate,
    BookingRead,
    BookingUpdate,
    Message,
    ReviewCreate,
    ReviewRead,
    RoomRead,
    TokenRequest,
    TokenResponse,
)
from services import BookingService, ReviewService, RoomService
from settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_today() -> date:
    """Date used for the cancellation window; overridden in tests."""
    return datetime.now(timezone.utc).date()


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "hotel management server is running"


# --- Rooms ---
@router.get("/hotels/top-rated", response_model=List[RoomRead])
async def top_rated_rooms(session: AsyncSession = Depends(get_session)):
    return await RoomService(session).top_rated()


@router.get("/all-rooms", response_model=List[RoomRead])
async def all_rooms(session: AsyncSession = Depends(get_session)):
    return await RoomService(session).list_rooms()


@router.get("/api/rooms/{room_id}", response_model=RoomRead)
async def room_detail(room_id: int, session: AsyncSession = Depends(get_session)):
    return await RoomService(session).get_room(room_id)


# --- Reviews ---
@router.get("/api/reviews", response_model=List[ReviewRead])
async def list_reviews(
    room_id: Optional[int] = Query(default=None, alias="roomId"),
    session: AsyncSession = Depends(get_session),
):
    return await ReviewService(session).list(room_id)


@router.post("/api/reviews", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
async def create_review(data: ReviewCreate, session: AsyncSession = Depends(get_session)):
    return await ReviewService(session).submit(
        data.room_id, data.user_email, data.user_name, data.rating, data.comment
    )


# --- Bookings ---
@router.post("/api/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(data: BookingCreate, session: AsyncSession = Depends(get_session)):
    return await BookingService(session).create(
        data.room_id, data.user_email, data.user_name, data.date
    )


@router.get("/api/bookings", response_model=List[BookingRead])
async def list_bookings(
    room_id: Optional[int] = Query(default=None, alias="roomId"),
    user_email: Optional[str] = Query(default=None, alias="userEmail"),
    identity: Identity = Depends(require_identity),
    session: AsyncSession = Depends(get_session),
):
    # Guests only ever see their own bookings
    if user_email and user_email != identity.email:
        logger.warning("%s tried to list bookings of %s", identity.email, user_email)
        raise Forbidden("Forbidden access")
    return await BookingService(session).list(room_id, identity.email)


@router.patch("/api/bookings/{booking_id}", response_model=BookingRead)
async def reschedule_booking(
    booking_id: int, data: BookingUpdate, session: AsyncSession = Depends(get_session)
):
    return await BookingService(session).reschedule(booking_id, data.room_id, data.date)


@router.delete("/api/bookings/{booking_id}", response_model=Message)
async def cancel_booking(
    booking_id: int,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_session),
):
    await BookingService(session).cancel(booking_id, today)
    return Message(message="Booking cancelled successfully")


# --- Session tokens ---
@router.post("/jwt", response_model=TokenResponse)
async def create_token(data: TokenRequest, request: Request):
    settings: Settings = request.app.state.settings
    if not settings.access_token_secret:
        raise RuntimeError("ACCESS_TOKEN_SECRET is not set")
    token = issue_token(data.email, settings.access_token_secret, settings.access_token_ttl_minutes)
    return TokenResponse(token=token)


async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=InvalidInput.status_code, content={"error": f"Invalid input: {problems}"}
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Error in %s %s", request.method, request.url.path)
    # Details stay in the log, they can carry SQL and guest data
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Internal server error"}
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings or Settings.from_env()
    app.state.settings = settings
    setup_logging(settings.log_level)

    app.state.database = Database(settings.database_url)
    if settings.access_token_secret:
        app.state.identity_verifier = JWTIdentityVerifier(settings.access_token_secret)
    else:
        logger.warning("ACCESS_TOKEN_SECRET is not set, protected routes will reject every request")

    await app.state.database.init()
    try:
        yield
    finally:
        await app.state.database.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    app = FastAPI(title="Hotel Booking API", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(router)
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    origins = settings.cors_origins if settings else Settings.cors_origins_from_env()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Settings.from_env().port)
