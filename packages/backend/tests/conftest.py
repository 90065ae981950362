"""Test fixtures — a throwaway SQLite database per test.

Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite file under tmp_path, with every table
   created from the models (function-scoped, so no cross-test pollution).
2. The app's get_db is overridden to open a fresh session per request
   from that database, so request handling matches production: one
   session per request, real commits.
3. Tests seed rows through db_session and authenticate with real tokens
   minted by create_token, so the whole auth pipeline runs.

Redis is never initialized (ASGITransport does not run the lifespan), so
rate limiting and live notification publishing are skipped.
"""

import os

os.environ.setdefault("DEMOSHARE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from demoshare.auth.jwt import create_token
from demoshare.db.engine import get_db
from demoshare.db.models import Base, Project, ProjectMetrics, Track, User
from demoshare.main import app
from demoshare.services.project_service import new_share_token


@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for seeding and inspecting rows directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with get_db pointed at the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Seed helpers ────────────────────────────────────────


@pytest.fixture()
def auth():
    """auth(user) → Authorization header with a fresh token for that user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_token(user.external_id)}"}

    return _headers


@pytest.fixture()
def make_user(db_session):
    async def _make(subject: str, **fields) -> User:
        user = User(external_id=subject, **fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_project(db_session):
    async def _make(creator: User, sharing_enabled: bool = True, tracks: int = 0, **fields) -> Project:
        project = Project(
            creator_id=creator.id,
            title=fields.pop("title", "Demo EP"),
            share_token=new_share_token(),
            sharing_enabled=sharing_enabled,
            **fields,
        )
        db_session.add(project)
        await db_session.flush()
        for i in range(tracks):
            db_session.add(
                Track(
                    project_id=project.id,
                    title=f"Track {i + 1}",
                    audio_url=f"https://cdn.example.com/{project.id}/{i}.mp3",
                    position=i,
                )
            )
        db_session.add(ProjectMetrics(project_id=project.id))
        await db_session.commit()
        return project

    return _make


@pytest_asyncio.fixture()
async def creator(make_user):
    """U1: owns the project."""
    return await make_user("did:privy:creator", username="creator")


@pytest_asyncio.fixture()
async def listener(make_user):
    """U2: a regular listener."""
    return await make_user("did:privy:listener", username="listener")


@pytest_asyncio.fixture()
async def stranger(make_user):
    """U3: neither author nor owner."""
    return await make_user("did:privy:stranger", email="stranger@example.com")


@pytest_asyncio.fixture()
async def project(make_project, creator):
    return await make_project(creator, tracks=2)


@pytest_asyncio.fixture()
async def hidden_project(make_project, creator):
    return await make_project(creator, sharing_enabled=False, tracks=1, title="Unreleased")


@pytest_asyncio.fixture()
async def track(db_session, project):
    result = await db_session.execute(
        select(Track).where(Track.project_id == project.id).order_by(Track.position)
    )
    return result.scalars().first()
