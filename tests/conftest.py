import httpx
import pytest
import pytest_asyncio

from auth import JWTIdentityVerifier, issue_token
from database import Database
from main import create_app
from models import Room
from settings import Settings

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        access_token_secret=TEST_SECRET,
    )


@pytest_asyncio.fixture
async def app(settings):
    """App wired the way the lifespan would, against a throwaway SQLite file."""
    app = create_app(settings)
    app.state.database = Database(settings.database_url)
    app.state.identity_verifier = JWTIdentityVerifier(TEST_SECRET)
    await app.state.database.init()
    yield app
    await app.state.database.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def rooms(app):
    rooms = [
        Room(name="Garden Suite", description="Ground floor", price_per_night=180, rating=4.9),
        Room(name="Sea View", description="Balcony", price_per_night=220, rating=4.7),
        Room(name="Standard Double", description="Courtyard side", price_per_night=90, rating=4.1),
    ]
    async with app.state.database.session() as session:
        session.add_all(rooms)
        await session.commit()
        for room in rooms:
            await session.refresh(room)
    return rooms


@pytest.fixture
def auth_header():
    def build(email: str) -> dict:
        return {"Authorization": f"Bearer {issue_token(email, TEST_SECRET)}"}
    return build
