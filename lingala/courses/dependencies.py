"""FastAPI dependencies for the course catalog."""

from typing import Annotated

from fastapi import Depends, Request

from lingala.core.errors import UpstreamUnavailableError
from lingala.courses.service import CourseService


async def get_course_service(request: Request) -> CourseService:
    """Get course service from app state."""
    service = getattr(request.app.state, "course_service", None)
    if service is None:
        raise UpstreamUnavailableError("Course catalog not available")
    return service


CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]
