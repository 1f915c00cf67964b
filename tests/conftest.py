"""Shared fixtures.

``FakeProgressSession`` stands in for a Cassandra session holding the
``lesson_progress`` table. Inserts behave like Cassandra upserts: the
row is addressed by (user_id, lesson_id) and columns left out of the
statement keep their stored value.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lingala.auth.permissions import UserRole
from lingala.auth.schemas import UserResponse
from lingala.auth.security import create_access_token
from lingala.courses.models import Course, Lesson, Module


PROGRESS_COLUMNS = (
    "user_id",
    "lesson_id",
    "current_time_seconds",
    "duration_seconds",
    "progress_percentage",
    "is_completed",
    "watch_time_seconds",
    "completed_at",
    "created_at",
    "updated_at",
)


class FakeResult(list):
    """Iterable result set with the driver's ``one()`` helper."""

    def one(self):
        return self[0] if self else None


class FakeProgressSession:
    """In-memory ``lesson_progress`` table."""

    def __init__(self) -> None:
        self.rows: dict[tuple[UUID, UUID], dict] = {}
        self.inserts = 0
        self.selects = 0

    def prepare(self, query: str) -> SimpleNamespace:
        return SimpleNamespace(query_string=" ".join(query.split()))

    async def aexecute(self, statement, params=None):
        # Yield so concurrent writers get a chance to interleave
        await asyncio.sleep(0)
        query = statement.query_string

        if query.startswith("SELECT"):
            self.selects += 1
            return FakeResult(self._select(query, params))

        if query.startswith("INSERT"):
            self.inserts += 1
            self._upsert(query, params)
            return FakeResult()

        raise AssertionError(f"unexpected statement: {query}")

    def _select(self, query: str, params: list) -> list[SimpleNamespace]:
        user_id = params[0]
        if "lesson_id IN" in query:
            wanted = set(params[1])
        elif "lesson_id = ?" in query:
            wanted = {params[1]}
        else:
            wanted = None
        return [
            SimpleNamespace(**row)
            for (row_user, row_lesson), row in self.rows.items()
            if row_user == user_id and (wanted is None or row_lesson in wanted)
        ]

    def _upsert(self, query: str, params: list) -> None:
        columns = [
            c.strip() for c in query[query.index("(") + 1 : query.index(")")].split(",")
        ]
        values = dict(zip([c for c in columns if c != "is_completed"], params))
        if "is_completed" in columns:
            values["is_completed"] = True

        key = (values["user_id"], values["lesson_id"])
        row = self.rows.setdefault(key, dict.fromkeys(PROGRESS_COLUMNS))
        row.update(values)


@pytest.fixture
def progress_session() -> FakeProgressSession:
    return FakeProgressSession()


# ==============================================================================
# Catalog
# ==============================================================================


@pytest.fixture
def course() -> Course:
    return Course(title="Lingala pour debutants", is_published=True)


@pytest.fixture
def module(course: Course) -> Module:
    return Module(course_id=course.id, title="Salutations")


@pytest.fixture
def lessons(module: Module) -> list[Lesson]:
    return [
        Lesson(
            module_id=module.id,
            title=f"Lecon {i}",
            video_url=f"https://cdn.lingala.cd/videos/{i}/playlist.m3u8",
            order_index=i,
        )
        for i in range(5)
    ]


@pytest.fixture
def lesson(lessons: list[Lesson]) -> Lesson:
    return lessons[0]


@pytest.fixture
def course_service(course: Course, module: Module, lessons: list[Lesson]) -> AsyncMock:
    """Catalog lookups over one course with one module of five lessons."""
    by_id = {lesson.id: lesson for lesson in lessons}
    service = AsyncMock()
    service.get_course.side_effect = lambda cid: course if cid == course.id else None
    service.get_module.side_effect = lambda mid: module if mid == module.id else None
    service.get_lesson.side_effect = by_id.get
    service.get_course_lesson_ids.side_effect = lambda cid: (
        [lesson.id for lesson in lessons] if cid == course.id else []
    )
    return service


# ==============================================================================
# Callers
# ==============================================================================


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def user(user_id: UUID) -> UserResponse:
    return UserResponse(id=user_id, email="mwana@lingala.cd", name="Mwana")


@pytest.fixture
def admin() -> UserResponse:
    return UserResponse(
        id=uuid4(), email="admin@lingala.cd", name="Admin", role=UserRole.ADMIN.value
    )


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a caller."""

    def _headers(user: UserResponse) -> dict[str, str]:
        token = create_access_token(
            {"sub": str(user.id), "email": user.email, "role": user.role}
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ==============================================================================
# API
# ==============================================================================


@pytest.fixture
def app() -> FastAPI:
    """Fresh application without lifespan (no datastore connections)."""
    from lingala.main import create_app

    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
