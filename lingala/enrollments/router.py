"""HTTP endpoints for enrollments.

Provides:
- GET  /v1/enrollments/my - Caller's enrollments with resume lesson
- POST /v1/admin/users/{user_id}/enrollments - Manual enrollment (admin)
"""

from uuid import UUID

from fastapi import APIRouter, status

from lingala.auth.dependencies import AdminUser, CurrentUser
from lingala.core.errors import CourseNotFoundError
from lingala.courses.dependencies import CourseServiceDep
from lingala.progress.dependencies import ProgressServiceDep
from lingala.progress.service import last_viewed_lesson_id

from .dependencies import EnrollmentServiceDep
from .schemas import (
    EnrollmentResponse,
    GrantEnrollmentRequest,
    MyEnrollmentListResponse,
    MyEnrollmentResponse,
)


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])
admin_router = APIRouter(prefix="/v1/admin/users", tags=["admin-enrollments"])


# ==============================================================================
# Learner Endpoints
# ==============================================================================


@router.get(
    "/my",
    response_model=MyEnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    user: CurrentUser,
    service: EnrollmentServiceDep,
    course_service: CourseServiceDep,
    progress_service: ProgressServiceDep,
) -> MyEnrollmentListResponse:
    """List the caller's enrollments, newest first.

    Each item carries the last lesson the caller touched in that course
    so the dashboard can offer "continue watching".
    """
    enrollments = await service.get_user_enrollments(user.id)
    progress = await progress_service.get_user_progress(user.id)

    items = []
    for enrollment in sorted(enrollments, key=lambda e: e.enrolled_at, reverse=True):
        course = await course_service.get_course(enrollment.course_id)
        lesson_ids = set(
            await course_service.get_course_lesson_ids(enrollment.course_id)
        )
        items.append(
            MyEnrollmentResponse(
                course_id=enrollment.course_id,
                course_title=course.title if course else None,
                enrolled_at=enrollment.enrolled_at,
                completed_at=enrollment.completed_at,
                last_viewed_lesson_id=last_viewed_lesson_id(progress, lesson_ids),
            )
        )

    return MyEnrollmentListResponse(items=items, total=len(items))


# ==============================================================================
# Admin Endpoints
# ==============================================================================


@admin_router.post(
    "/{user_id}/enrollments",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a user in a course",
)
async def grant_enrollment(
    user_id: UUID,
    request: GrantEnrollmentRequest,
    admin: AdminUser,
    service: EnrollmentServiceDep,
    course_service: CourseServiceDep,
) -> EnrollmentResponse:
    """Manually enroll a user.

    Returns 404 for an unknown course and 409 ``already_enrolled`` when
    the user already holds an enrollment for it.
    """
    if await course_service.get_course(request.course_id) is None:
        raise CourseNotFoundError

    enrollment = await service.grant_enrollment(
        user_id=user_id,
        course_id=request.course_id,
        granted_by=admin.id,
    )
    return EnrollmentResponse.from_enrollment(enrollment)
