"""Subscription lifecycle mapping"""
from datetime import datetime

import pytest

from clinic_billing.services.subscription_state import (
    ClinicSubscriptionStatus,
    clinic_status_for,
    is_terminal,
    normalize_subscription_status,
    period_end_for,
)


def test_canceled_is_respelled():
    assert normalize_subscription_status("canceled") == "cancelled"
    assert normalize_subscription_status("past_due") == "past_due"


@pytest.mark.parametrize("stripe_status,expected", [
    ("active", ClinicSubscriptionStatus.ACTIVE),
    ("trialing", ClinicSubscriptionStatus.ACTIVE),
    ("past_due", ClinicSubscriptionStatus.PAST_DUE),
    ("unpaid", ClinicSubscriptionStatus.PAST_DUE),
    ("canceled", ClinicSubscriptionStatus.CANCELLED),
    ("cancelled", ClinicSubscriptionStatus.CANCELLED),
    ("incomplete", None),
    ("paused", None),
])
def test_clinic_status_for(stripe_status, expected):
    assert clinic_status_for(stripe_status) == expected


def test_only_cancelled_is_terminal():
    assert is_terminal("cancelled")
    assert not is_terminal("past_due")
    assert not is_terminal(None)


def test_period_end_for_plan():
    start = datetime(2026, 1, 1)
    assert period_end_for("monthly", start) == datetime(2026, 1, 31)
    assert period_end_for("yearly", start) == datetime(2027, 1, 1)
    assert period_end_for(None, start) == datetime(2026, 1, 31)
