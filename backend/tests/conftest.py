"""Pytest configuration: in-memory database, fake push gateway, fixed clock."""
from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notifier import models  # noqa: F401  (registers tables)
from notifier.config import Settings
from notifier.database import Base, get_db
from notifier.dependencies import get_current_uid
from notifier.errors import GatewayError
from notifier.main import create_app
from notifier.models import Schedule, ScheduleAssignment, Service, ServiceSong, User
from notifier.services import build_services
from notifier.services.push_sender import DispatchResult

WORSHIP_LEADER = "pos-worship-leader"


class FakeGateway:
    """Records multicast calls; every token succeeds unless told otherwise."""

    def __init__(self):
        self.calls = []
        self.failing_tokens = set()
        self.error = None
        self.fail_on_call = None

    async def send_multicast(self, tokens, title, body, data, link):
        self.calls.append({
            "tokens": list(tokens),
            "title": title,
            "body": body,
            "data": dict(data),
            "link": link,
        })
        if self.error is not None and (self.fail_on_call is None or len(self.calls) == self.fail_on_call):
            raise GatewayError(self.error)
        failed = len([t for t in tokens if t in self.failing_tokens])
        return DispatchResult(success=len(tokens) - failed, failure=failed)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class QueryLog:
    """SQL statements executed on the test engine."""

    def __init__(self):
        self.statements = []

    def count(self, fragment: str) -> int:
        return len([s for s in self.statements if fragment in s])

    def clear(self):
        self.statements.clear()


@pytest.fixture
def config():
    return Settings(
        _env_file=None,
        app_base_url="https://app.example.org",
        cron_secret="cron-s3cret",
        reminder_minister_days_before=3,
        reminder_musicians_days_before=2,
        worship_leader_position_id=WORSHIP_LEADER,
        reminder_timezone="UTC",
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def query_log():
    return QueryLog()


@pytest.fixture
async def engine(query_log):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def log_statement(conn, cursor, statement, parameters, context, executemany):
        query_log.statements.append(statement)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    query_log.clear()
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def services(config, gateway, clock):
    return build_services(config, gateway=gateway, clock=clock)


@pytest.fixture
def seed(session):
    """Helpers that insert users, services and schedules."""

    class Seeder:
        async def user(self, user_id, role="member", active=True, linked_person_id=None, name=None):
            user = User(id=user_id, role=role, active=active, linked_person_id=linked_person_id, name=name)
            session.add(user)
            await session.commit()
            return user

        async def service(self, service_id, day, name="Sunday service", start_time="10:30", songs=()):
            service = Service(id=service_id, name=name, date=day, start_time=start_time)
            service.songs = [ServiceSong(title=title) for title in songs]
            session.add(service)
            await session.commit()
            return service

        async def schedule(self, month, assignments=()):
            """``assignments``: iterable of (service_id, person_id, position_id)."""
            schedule = Schedule(month=month)
            schedule.assignments = [
                ScheduleAssignment(service_id=s, person_id=p, position_id=pos)
                for s, p, pos in assignments
            ]
            session.add(schedule)
            await session.commit()
            return schedule

    return Seeder()


@pytest.fixture
def caller():
    """Uid returned by the overridden authentication dependency."""
    return {"uid": "root-1"}


@pytest.fixture
async def client(config, gateway, clock, session_factory, caller):
    app = create_app(config, gateway=gateway, clock=clock)

    async def override_get_db():
        async with session_factory() as db:
            yield db

    async def override_get_current_uid():
        return caller["uid"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_uid] = override_get_current_uid

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
