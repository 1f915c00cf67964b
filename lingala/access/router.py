"""HTTP endpoints for lesson access.

Provides:
- POST /v1/lessons/{lesson_id}/access-token - Playable reference or denial
- GET  /v1/lessons/{lesson_id}/access - Access decision only
"""

from uuid import UUID

from fastapi import APIRouter

from lingala.auth.dependencies import OptionalUser

from .dependencies import AccessServiceDep
from .schemas import AccessDecisionResponse, PlaybackResponse


router = APIRouter(prefix="/v1/lessons", tags=["access"])


@router.post(
    "/{lesson_id}/access-token",
    response_model=PlaybackResponse,
    summary="Get a playable reference for a lesson",
)
async def issue_access_token(
    lesson_id: UUID,
    user: OptionalUser,
    service: AccessServiceDep,
) -> PlaybackResponse:
    """Issue a time-limited playback URL.

    Anonymous callers are accepted: free-preview lessons need no sign-in.
    Denials come back as 401 ``authentication_required`` or
    403 ``not_enrolled``.
    """
    grant = await service.issue_playback(lesson_id, user)
    return PlaybackResponse.from_grant(grant)


@router.get(
    "/{lesson_id}/access",
    response_model=AccessDecisionResponse,
    summary="Check lesson access",
)
async def check_lesson_access(
    lesson_id: UUID,
    user: OptionalUser,
    service: AccessServiceDep,
) -> AccessDecisionResponse:
    """Return the access decision without issuing a URL (never a 401/403)."""
    _, decision = await service.check_lesson_access(lesson_id, user)
    return AccessDecisionResponse.from_decision(lesson_id, decision)
