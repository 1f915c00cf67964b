"""Enrollment service.

Reads enrollments for access checks and listings, and writes the
admin manual grant. Purchase enrollments are written by the payment
webhook, outside this service.
"""

from uuid import UUID

import structlog

from lingala.core.database.query import CassandraService
from lingala.core.errors import AlreadyEnrolledError

from .models import Enrollment, create_admin_grant


logger = structlog.get_logger(__name__)


class EnrollmentService(CassandraService):
    """Service for course enrollments."""

    def _prepare_statements(self) -> None:
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE user_id = ? AND course_id = ?
        """)

        self._get_user_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE user_id = ?
        """)

        # Lightweight transaction: concurrent grants cannot both apply
        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (user_id, course_id, source, granted_by, enrolled_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    async def get_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        result = await self._execute(self._get_enrollment, [user_id, course_id])
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def is_enrolled(self, user_id: UUID, course_id: UUID) -> bool:
        """Check whether an enrollment exists for (user, course)."""
        return await self.get_enrollment(user_id, course_id) is not None

    async def get_user_enrollments(self, user_id: UUID) -> list[Enrollment]:
        """All enrollments of a user."""
        rows = await self._execute(self._get_user_enrollments, [user_id])
        return [Enrollment.from_row(row) for row in rows]

    async def grant_enrollment(
        self,
        user_id: UUID,
        course_id: UUID,
        granted_by: UUID,
    ) -> Enrollment:
        """Manually enroll a user in a course (admin action).

        Raises:
            AlreadyEnrolledError: If the user already has an enrollment for the course
        """
        enrollment = create_admin_grant(
            user_id=user_id,
            course_id=course_id,
            granted_by=granted_by,
        )

        result = await self._execute(
            self._insert_enrollment,
            [
                enrollment.user_id,
                enrollment.course_id,
                enrollment.source.value,
                enrollment.granted_by,
                enrollment.enrolled_at,
                enrollment.completed_at,
            ],
        )

        if not result.was_applied:
            logger.info(
                "enrollment_grant_rejected_duplicate",
                user_id=str(user_id),
                course_id=str(course_id),
            )
            raise AlreadyEnrolledError

        logger.info(
            "enrollment_granted",
            user_id=str(user_id),
            course_id=str(course_id),
            granted_by=str(granted_by),
        )

        return enrollment
