"""FastAPI dependencies for progress tracking."""

from typing import Annotated

from fastapi import Depends, Request

from lingala.core.errors import UpstreamUnavailableError

from .service import ProgressService


async def get_progress_service(request: Request) -> ProgressService:
    """Get progress service from app state.

    Raises:
        UpstreamUnavailableError: when the datastore was not reachable at startup
    """
    app_state = request.app.state
    if not getattr(app_state, "progress_service", None):
        raise UpstreamUnavailableError("Progress service not available")
    return app_state.progress_service


# Type alias for dependency injection
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]
