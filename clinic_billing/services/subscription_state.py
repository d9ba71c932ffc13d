"""
Subscription lifecycle states and the clinic status derived from them.

    none -> pending_checkout -> active <-> past_due -> cancelled

A clinic's subscription_status is never set independently: it is always
computed here from the status of its subscription.
"""
import enum
from datetime import datetime, timedelta
from typing import Optional


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    CANCELLED = "cancelled"


class ClinicSubscriptionStatus(str, enum.Enum):
    PENDING = "pending"  # Checkout opened, no completed payment yet
    ACTIVE = "active"
    PAST_DUE = "past_due"
    INACTIVE = "inactive"  # Subscription deleted at the provider
    CANCELLED = "cancelled"


class Plan(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


TERMINAL_STATUSES = frozenset({SubscriptionStatus.CANCELLED.value})

_PERIOD_DAYS = {
    Plan.MONTHLY.value: 30,
    Plan.YEARLY.value: 365,
}

# Stripe subscription status -> clinic status. Statuses missing here
# (incomplete, incomplete_expired, paused) leave the clinic untouched.
_CLINIC_STATUS_FOR = {
    "active": ClinicSubscriptionStatus.ACTIVE,
    "trialing": ClinicSubscriptionStatus.ACTIVE,
    SubscriptionStatus.PAST_DUE.value: ClinicSubscriptionStatus.PAST_DUE,
    SubscriptionStatus.UNPAID.value: ClinicSubscriptionStatus.PAST_DUE,
    SubscriptionStatus.CANCELLED.value: ClinicSubscriptionStatus.CANCELLED,
}


def normalize_subscription_status(stripe_status: str) -> str:
    """Stripe spells it "canceled"; the schema uses "cancelled"."""
    if stripe_status == "canceled":
        return SubscriptionStatus.CANCELLED.value
    return stripe_status


def clinic_status_for(subscription_status: str) -> Optional[ClinicSubscriptionStatus]:
    return _CLINIC_STATUS_FOR.get(normalize_subscription_status(subscription_status))


def is_terminal(subscription_status: Optional[str]) -> bool:
    return subscription_status in TERMINAL_STATUSES


def period_end_for(plan: Optional[str], start: datetime) -> datetime:
    """End of the first billing period; unknown plans bill monthly."""
    return start + timedelta(days=_PERIOD_DAYS.get(plan, _PERIOD_DAYS[Plan.MONTHLY.value]))
