import os

os.environ["LOG_FILE"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lecture_app.database import Base
from lecture_app.dependencies import get_db, get_now
from lecture_app.main import app
from lecture_app.models.attendance import AttendanceRecord
from lecture_app.models.lecture import Lecture
from lecture_app.models.student import Student

# Wednesday; the week started on Sunday 2026-10-18 00:00
NOW = datetime(2026, 10, 21, 10, 0)
LAST_WEEK = datetime(2026, 10, 12, 9, 30)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite transaction handling breaks SAVEPOINT unless BEGIN is explicit
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return Clock(NOW)


@pytest_asyncio.fixture
async def client(session_factory, clock):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seed(session_factory):
    async def _seed(*objects):
        async with session_factory() as session:
            session.add_all(objects)
            await session.commit()
        return objects
    return _seed


def make_lecture(**overrides) -> Lecture:
    values = dict(
        subject="Data Structures",
        class_year="TY",
        division="A",
        day_of_week="Monday",
        start_time="09:00",
        end_time="10:00",
        scheduled_teacher_id=7,
        status="scheduled",
    )
    values.update(overrides)
    return Lecture(**values)


def make_student(name: str, **overrides) -> Student:
    values = dict(name=name, class_year="TY", division="A", department="Computer Science")
    values.update(overrides)
    return Student(**values)


def make_mark(lecture: Lecture, student: Student, status: str, created_at: datetime) -> AttendanceRecord:
    return AttendanceRecord(
        lecture_id=lecture.id,
        student_id=student.id,
        status=status,
        created_at=created_at,
    )


@pytest_asyncio.fixture
async def ty_a_class(seed):
    """Monday TY-A lecture, three TY-A students and two outsiders"""
    lecture = make_lecture()
    students = [
        make_student("Asha Patil", roll_number="TYA01"),
        make_student("Bilal Khan", roll_number="TYA02"),
        make_student("Chitra Rao", roll_number="TYA03"),
    ]
    outsiders = [
        make_student("Dev Shah", roll_number="TYB01", division="B"),
        make_student("Esha Nair", roll_number="SYA01", class_year="SY"),
    ]
    await seed(lecture, *students, *outsiders)
    return lecture, students, outsiders
