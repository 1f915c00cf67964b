"""Dependency injection for lesson access."""

from typing import Annotated

from fastapi import Depends, Request

from lingala.core.errors import UpstreamUnavailableError

from .service import AccessService


async def get_access_service(request: Request) -> AccessService:
    """Get access service from app state."""
    service = getattr(request.app.state, "access_service", None)
    if service is None:
        raise UpstreamUnavailableError("Access service not available")
    return service


AccessServiceDep = Annotated[AccessService, Depends(get_access_service)]
