"""
Shared fixtures: a throwaway SQLite database per test, user/municipality
factories and an HTTP client bound to the same database.
"""
import itertools
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

import app.models  # noqa: F401  registers every table
from app.core.security import get_password_hash, create_access_token
from app.database import Base, get_db, enable_sqlite_savepoints
from app.models import User, Role, Municipality, CollectorStatus, WasteType
from app.schemas import ServiceRequestCreate
from app.services import service_requests as request_service
from app.services.caller import Caller

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)

_sequence = itertools.count(1)


def caller_for(user: User) -> Caller:
    return Caller(user_id=user.id, role=Role(user.role))


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'wastecollect.db'}")
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_municipality(db):
    async def _make(name=None, **fields):
        municipality = Municipality(name=name or f"Municipality {next(_sequence)}", enabled=True, **fields)
        db.add(municipality)
        await db.flush()
        return municipality
    return _make


@pytest.fixture
async def municipality(make_municipality):
    return await make_municipality("Dschang")


@pytest.fixture
def make_user(db):
    async def _make(role=Role.HOUSEHOLD, municipality=None, **fields):
        n = next(_sequence)
        values = {
            "first_name": fields.pop("first_name", role.value.title()),
            "last_name": fields.pop("last_name", str(n)),
            "email": fields.pop("email", f"{role.value.lower()}{n}@example.com"),
            "hashed_password": PASSWORD_HASH,
            "role": role.value,
            "enabled": True,
            "locked": False,
            "municipality_id": municipality.id if municipality is not None else None,
        }
        if role == Role.HOUSEHOLD:
            values["is_active"] = True
            values["address"] = f"{n} Market Street"
        if role == Role.COLLECTOR:
            values["collector_code"] = f"COL-{n:06d}"
            values["collector_status"] = CollectorStatus.ACTIVE.value
        values.update(fields)

        user = User(**values)
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user
    return _make


@pytest.fixture
async def client(session_factory):
    """HTTP client; each request runs in its own committed session"""
    from app.main import app
    from app.api.auth import limiter

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    limiter.enabled = True


def new_request(**overrides):
    data = {
        "description": "Kitchen and garden waste",
        "waste_type": WasteType.ORGANIC,
        "estimated_volume": 10,
        "address": "12 Market Street",
    }
    data.update(overrides)
    return ServiceRequestCreate(**data)


async def run_to_completion(db, household, collector, weight=5.0, **overrides):
    """Creates a request for `household` and walks it to COMPLETED with `collector`"""
    data = {
        "description": "Mixed household waste",
        "waste_type": WasteType.HOUSEHOLD,
        "estimated_volume": weight,
        "address": household.address or "1 Main Road",
    }
    data.update(overrides)
    request = await request_service.create_service_request(db, caller_for(household), ServiceRequestCreate(**data))
    await request_service.accept_service_request(db, caller_for(collector), request.id)
    await request_service.start_service_request(db, caller_for(collector), request.id)
    await request_service.complete_service_request(db, caller_for(collector), request.id, None, weight)
    return request
