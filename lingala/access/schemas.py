"""Pydantic schemas for lesson access."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .resolver import AccessDecision, AccessReason, DenialReason
from .service import PlaybackGrant


class AccessDecisionResponse(BaseModel):
    """Outcome of the access rules, for UI mirroring."""

    lesson_id: UUID
    allowed: bool
    reason: AccessReason | None = None
    denial: DenialReason | None = None

    @classmethod
    def from_decision(
        cls, lesson_id: UUID, decision: AccessDecision
    ) -> "AccessDecisionResponse":
        return cls(
            lesson_id=lesson_id,
            allowed=decision.allowed,
            reason=decision.reason,
            denial=decision.denial,
        )


class PlaybackResponse(BaseModel):
    """Playable reference for an authorized lesson."""

    lesson_id: UUID
    reason: AccessReason
    available: bool = Field(
        ..., description="False while the video is still being transcoded"
    )
    playback_url: str | None = None
    expires_in: int | None = Field(
        default=None, description="Seconds the URL stays valid; null when unsigned"
    )
    expires_at: datetime | None = None

    @classmethod
    def from_grant(cls, grant: PlaybackGrant) -> "PlaybackResponse":
        return cls(
            lesson_id=grant.lesson_id,
            reason=grant.reason,
            available=grant.available,
            playback_url=grant.playback_url,
            expires_in=grant.expires_in,
            expires_at=grant.expires_at,
        )
