"""HTTP endpoints for subscription status.

Provides:
- GET /v1/subscription/status - Caller's premium access status
"""

from fastapi import APIRouter

from lingala.auth.dependencies import CurrentUser

from .dependencies import SubscriptionServiceDep
from .schemas import SubscriptionResponse, SubscriptionStatusResponse


router = APIRouter(prefix="/v1/subscription", tags=["subscription"])


@router.get(
    "/status",
    response_model=SubscriptionStatusResponse,
    summary="Get subscription status",
)
async def get_subscription_status(
    user: CurrentUser,
    service: SubscriptionServiceDep,
) -> SubscriptionStatusResponse:
    """Return whether the caller has an active subscription.

    The subscription shown is the active one, or the latest known row
    when none is active (so the UI can offer a renewal).
    """
    subscription = await service.get_current_subscription(user.id)
    if subscription is None:
        return SubscriptionStatusResponse(has_active_subscription=False)

    return SubscriptionStatusResponse(
        has_active_subscription=subscription.is_active(),
        subscription=SubscriptionResponse.from_subscription(subscription),
    )
