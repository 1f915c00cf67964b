"""Course enrollment models and Cassandra schema.

An enrollment is a persisted grant of access to one course:
- PURCHASE: created by the payment webhook after a one-time checkout
- ADMIN_GRANT: created manually from the back-office
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID


if TYPE_CHECKING:
    from cassandra.cluster import Row


class EnrollmentSource(str, Enum):
    """How the user obtained the enrollment."""

    PURCHASE = "purchase"
    ADMIN_GRANT = "admin_grant"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# One row per (user, course): the key itself forbids duplicate enrollments
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    user_id UUID,
    course_id UUID,
    source TEXT,
    granted_by UUID,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY ((user_id), course_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass
class Enrollment:
    """A user's enrollment in a course."""

    user_id: UUID
    course_id: UUID
    source: EnrollmentSource = EnrollmentSource.PURCHASE
    granted_by: UUID | None = None
    enrolled_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "Enrollment":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            source=EnrollmentSource(row.source or EnrollmentSource.PURCHASE.value),
            granted_by=row.granted_by,
            enrolled_at=ensure_utc_aware(row.enrolled_at) or datetime.now(UTC),
            completed_at=ensure_utc_aware(row.completed_at),
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "course_id": self.course_id,
            "source": self.source.value,
            "granted_by": self.granted_by,
            "enrolled_at": self.enrolled_at.isoformat(),
            "completed_at": self.completed_at.isoformat()
            if self.completed_at
            else None,
        }


def create_admin_grant(
    user_id: UUID,
    course_id: UUID,
    granted_by: UUID,
) -> Enrollment:
    """Create an enrollment granted from the back-office."""
    return Enrollment(
        user_id=user_id,
        course_id=course_id,
        source=EnrollmentSource.ADMIN_GRANT,
        granted_by=granted_by,
    )
