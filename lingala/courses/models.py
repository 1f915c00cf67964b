"""Database models for the course catalog.

Cassandra table definitions for:
- Courses: top-level product
- Modules: ordered sections, each owned by one course
- Lessons: ordered content items, each owned by one module
- Lookup tables: ordered children per parent

The catalog is maintained by the back-office; this service only reads it.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    level TEXT,
    language TEXT,
    thumbnail_url TEXT,
    price DECIMAL,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# A module or lesson with a null parent id is an integrity break
MODULE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.modules (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    description TEXT,
    order_index INT,
    created_at TIMESTAMP
)
"""

LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    id UUID PRIMARY KEY,
    module_id UUID,
    title TEXT,
    content TEXT,
    video_url TEXT,
    duration_minutes INT,
    free_preview BOOLEAN,
    order_index INT,
    created_at TIMESTAMP
)
"""

MODULES_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.modules_by_course (
    course_id UUID,
    order_index INT,
    module_id UUID,
    PRIMARY KEY ((course_id), order_index, module_id)
) WITH CLUSTERING ORDER BY (order_index ASC, module_id ASC)
"""

LESSONS_BY_MODULE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons_by_module (
    module_id UUID,
    order_index INT,
    lesson_id UUID,
    PRIMARY KEY ((module_id), order_index, lesson_id)
) WITH CLUSTERING ORDER BY (order_index ASC, lesson_id ASC)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    MODULE_TABLE_CQL,
    LESSON_TABLE_CQL,
    MODULES_BY_COURSE_TABLE_CQL,
    LESSONS_BY_MODULE_TABLE_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        description: Course description
        level: Proficiency level label (beginner, intermediate...)
        language: Language taught
        thumbnail_url: Cover image
        price: One-time purchase price
        is_published: Visible in the public catalog
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        level: str | None = None,
        language: str | None = None,
        thumbnail_url: str | None = None,
        price: Decimal | None = None,
        is_published: bool = False,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title
        self.description = description
        self.level = level
        self.language = language
        self.thumbnail_url = thumbnail_url
        self.price = price
        self.is_published = is_published
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description,
            level=row.level,
            language=row.language,
            thumbnail_url=row.thumbnail_url,
            price=row.price,
            is_published=bool(row.is_published),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "level": self.level,
            "language": self.language,
            "thumbnail_url": self.thumbnail_url,
            "price": self.price,
            "is_published": self.is_published,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.title} published={self.is_published}>"


class Module:
    """Module entity: an ordered section of one course."""

    def __init__(
        self,
        id: UUID | None = None,
        course_id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        order_index: int = 0,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title
        self.description = description
        self.order_index = order_index
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Module":
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            description=row.description,
            order_index=row.order_index or 0,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "description": self.description,
            "order_index": self.order_index,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Module {self.title} course={self.course_id}>"


class Lesson:
    """Lesson entity.

    ``free_preview`` is the only per-lesson authorization override: when
    set, anyone (including anonymous visitors) may watch the lesson.
    ``video_url`` stays null until the transcoding service has produced a
    playable manifest.

    Attributes:
        id: Unique identifier (UUID)
        module_id: Owning module
        title: Lesson title
        content: Text body shown under the player
        video_url: Playable manifest URL, null while transcoding
        duration_minutes: Nominal duration
        free_preview: Open to everyone
        order_index: Position inside the module
    """

    def __init__(
        self,
        id: UUID | None = None,
        module_id: UUID | None = None,
        title: str = "",
        content: str | None = None,
        video_url: str | None = None,
        duration_minutes: int | None = None,
        free_preview: bool = False,
        order_index: int = 0,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.module_id = module_id
        self.title = title
        self.content = content
        self.video_url = video_url
        self.duration_minutes = duration_minutes
        self.free_preview = free_preview
        self.order_index = order_index
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from Cassandra row."""
        return cls(
            id=row.id,
            module_id=row.module_id,
            title=row.title or "",
            content=row.content,
            video_url=row.video_url,
            duration_minutes=row.duration_minutes,
            free_preview=bool(row.free_preview),
            order_index=row.order_index or 0,
            created_at=row.created_at,
        )

    @property
    def has_playable_video(self) -> bool:
        return bool(self.video_url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "module_id": self.module_id,
            "title": self.title,
            "content": self.content,
            "video_url": self.video_url,
            "duration_minutes": self.duration_minutes,
            "free_preview": self.free_preview,
            "order_index": self.order_index,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.title} preview={self.free_preview}>"
