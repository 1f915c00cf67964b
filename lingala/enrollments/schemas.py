"""Pydantic schemas for enrollments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import Enrollment, EnrollmentSource


class EnrollmentResponse(BaseModel):
    """Response schema for a single enrollment."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    course_id: UUID
    source: EnrollmentSource
    granted_by: UUID | None = None
    enrolled_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> "EnrollmentResponse":
        return cls(
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            source=enrollment.source,
            granted_by=enrollment.granted_by,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at,
        )


class MyEnrollmentResponse(BaseModel):
    """Enrollment as listed on the learner dashboard."""

    course_id: UUID
    course_title: str | None = Field(
        None, description="Null when the course row no longer exists"
    )
    enrolled_at: datetime
    completed_at: datetime | None = None
    last_viewed_lesson_id: UUID | None = Field(
        None, description="Most recently updated lesson of this course"
    )


class MyEnrollmentListResponse(BaseModel):
    items: list[MyEnrollmentResponse]
    total: int


class GrantEnrollmentRequest(BaseModel):
    """Admin request to enroll a user manually."""

    course_id: UUID = Field(..., description="Course to enroll the user in")
