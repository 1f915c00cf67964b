"""Dependency injection for the enrollments module."""

from typing import Annotated

from fastapi import Depends, Request

from lingala.core.errors import UpstreamUnavailableError

from .service import EnrollmentService


async def get_enrollment_service(request: Request) -> EnrollmentService:
    """Get enrollment service from app state."""
    service = getattr(request.app.state, "enrollment_service", None)
    if service is None:
        raise UpstreamUnavailableError("Enrollment service not available")
    return service


EnrollmentServiceDep = Annotated[EnrollmentService, Depends(get_enrollment_service)]
