"""Premium subscriptions (read side)."""

from .models import SUBSCRIPTIONS_TABLES_CQL, Subscription, SubscriptionStatus


__all__ = ["SUBSCRIPTIONS_TABLES_CQL", "Subscription", "SubscriptionStatus"]
