"""Typed parsing of Stripe events"""
import uuid

import pytest

from clinic_billing.core.errors import EventValidationError
from clinic_billing.schemas.events import (
    CheckoutSessionCompleted,
    InvoicePaymentFailed,
    SubscriptionDeleted,
    SubscriptionUpdated,
    UnhandledEvent,
    parse_event,
)
from factories import BASE_CREATED, checkout_completed, invoice_payment_failed, subscription_event, unhandled


def test_checkout_completed_is_typed():
    clinic_id = uuid.uuid4()
    event = parse_event(checkout_completed(clinic_id))
    assert isinstance(event, CheckoutSessionCompleted)
    assert event.data.object.metadata.clinic_id == clinic_id
    assert event.data.object.metadata.plan == "monthly"
    assert event.created_at.year == 2025


def test_subscription_events_are_typed():
    assert isinstance(parse_event(subscription_event()), SubscriptionUpdated)
    deleted = parse_event(subscription_event(event_type="customer.subscription.deleted"))
    assert isinstance(deleted, SubscriptionDeleted)


def test_invoice_failure_is_typed():
    event = parse_event(invoice_payment_failed())
    assert isinstance(event, InvoicePaymentFailed)
    assert event.data.object.customer == "cus_123"


def test_unknown_type_is_unhandled():
    event = parse_event(unhandled())
    assert isinstance(event, UnhandledEvent)
    assert event.type == "customer.created"


def test_missing_clinic_id_is_a_validation_error():
    with pytest.raises(EventValidationError) as exc_info:
        parse_event(checkout_completed(None))
    assert "clinic_id" in exc_info.value.message


def test_malformed_clinic_id_is_a_validation_error():
    with pytest.raises(EventValidationError):
        parse_event(checkout_completed("not-a-uuid"))


def test_missing_metadata_is_a_validation_error():
    payload = checkout_completed(uuid.uuid4())
    del payload["data"]["object"]["metadata"]
    with pytest.raises(EventValidationError):
        parse_event(payload)


def test_unknown_plan_is_a_validation_error():
    with pytest.raises(EventValidationError):
        parse_event(checkout_completed(uuid.uuid4(), plan="weekly"))


def test_missing_envelope_fields_are_a_validation_error():
    with pytest.raises(EventValidationError):
        parse_event({"type": "customer.created"})


def test_period_bounds_read_from_items_when_absent():
    payload = subscription_event()
    obj = payload["data"]["object"]
    del obj["current_period_start"]
    del obj["current_period_end"]
    obj["items"] = {"data": [{"current_period_start": BASE_CREATED, "current_period_end": BASE_CREATED + 86400}]}
    event = parse_event(payload)
    assert event.data.object.current_period_start == BASE_CREATED
    assert event.data.object.current_period_end == BASE_CREATED + 86400


def test_one_off_checkout_needs_no_metadata():
    payload = checkout_completed(None, subscription=None, plan=None)
    del payload["data"]["object"]["metadata"]
    event = parse_event(payload)
    assert isinstance(event, CheckoutSessionCompleted)
    assert event.data.object.subscription is None
    assert event.data.object.metadata is None
