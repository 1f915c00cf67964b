"""Lesson access rules.

Single source of truth for who may watch a lesson. A lesson is
playable when ANY of these holds:

1. the lesson is a free preview (no sign-in needed)
2. the caller is signed in and enrolled in the lesson's course
3. the caller is signed in and has an active subscription

The reported reason follows that order, but the rules are a plain OR.
The client mirrors these rules to grey out the player; only the server
decision is enforced.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from lingala.core.errors import (
    AuthenticationRequiredError,
    LingalaError,
    NotEnrolledError,
)


if TYPE_CHECKING:
    from lingala.auth.schemas import UserResponse
    from lingala.courses.models import Lesson


class AccessReason(str, Enum):
    """Why access was granted."""

    FREE_PREVIEW = "free_preview"
    ENROLLMENT = "enrollment"
    SUBSCRIPTION = "subscription"


class DenialReason(str, Enum):
    """Why access was refused."""

    AUTHENTICATION_REQUIRED = "authentication_required"
    NOT_ENROLLED = "not_enrolled"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: AccessReason | None = None
    denial: DenialReason | None = None

    def to_error(self) -> LingalaError | None:
        """Domain error matching the denial, None when allowed."""
        if self.denial is DenialReason.AUTHENTICATION_REQUIRED:
            return AuthenticationRequiredError()
        if self.denial is DenialReason.NOT_ENROLLED:
            return NotEnrolledError()
        return None


def resolve_access(
    lesson: "Lesson",
    user: "UserResponse | None",
    *,
    enrolled: bool,
    subscription_active: bool,
) -> AccessDecision:
    """Decide whether ``user`` may watch ``lesson``.

    Args:
        lesson: The lesson being opened.
        user: Authenticated caller, or None for anonymous visitors.
        enrolled: Caller holds an enrollment for the lesson's course.
        subscription_active: Caller's subscription is currently active.

    Enrollment and subscription flags are ignored for anonymous callers.
    """
    if lesson.free_preview:
        return AccessDecision(allowed=True, reason=AccessReason.FREE_PREVIEW)

    if user is None:
        return AccessDecision(
            allowed=False, denial=DenialReason.AUTHENTICATION_REQUIRED
        )

    if enrolled:
        return AccessDecision(allowed=True, reason=AccessReason.ENROLLMENT)

    if subscription_active:
        return AccessDecision(allowed=True, reason=AccessReason.SUBSCRIPTION)

    return AccessDecision(allowed=False, denial=DenialReason.NOT_ENROLLED)
