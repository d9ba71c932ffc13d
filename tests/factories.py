"""Stripe webhook payloads and signatures for tests."""
import hashlib
import hmac
import json
import time

WEBHOOK_SECRET = "whsec_test_secret"

# 2025-10-09 08:53:20 UTC
BASE_CREATED = 1_760_000_000


def sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Stripe-Signature header value for payload."""
    if timestamp is None:
        timestamp = int(time.time())
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def encode(event: dict) -> bytes:
    return json.dumps(event).encode("utf-8")


def checkout_completed(
    clinic_id,
    event_id="evt_checkout_1",
    subscription="sub_123",
    customer="cus_123",
    payment_intent="pi_123",
    amount_total=7500,
    currency="usd",
    plan="monthly",
    created=BASE_CREATED,
):
    metadata = {}
    if clinic_id is not None:
        metadata["clinic_id"] = str(clinic_id)
    if plan is not None:
        metadata["plan"] = plan
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "created": created,
        "data": {
            "object": {
                "id": "cs_test_123",
                "object": "checkout.session",
                "mode": "subscription",
                "customer": customer,
                "subscription": subscription,
                "payment_intent": payment_intent,
                "amount_total": amount_total,
                "currency": currency,
                "metadata": metadata,
            }
        },
    }


def subscription_event(
    event_type="customer.subscription.updated",
    event_id="evt_sub_1",
    subscription="sub_123",
    status="active",
    created=BASE_CREATED + 100,
    period_start=BASE_CREATED,
    period_end=BASE_CREATED + 30 * 86400,
    cancel_at_period_end=False,
):
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": created,
        "data": {
            "object": {
                "id": subscription,
                "object": "subscription",
                "customer": "cus_123",
                "status": status,
                "current_period_start": period_start,
                "current_period_end": period_end,
                "cancel_at_period_end": cancel_at_period_end,
            }
        },
    }


def invoice_payment_failed(event_id="evt_inv_1", customer="cus_123", subscription="sub_123", created=BASE_CREATED + 200):
    return {
        "id": event_id,
        "object": "event",
        "type": "invoice.payment_failed",
        "created": created,
        "data": {
            "object": {
                "id": "in_123",
                "object": "invoice",
                "customer": customer,
                "subscription": subscription,
            }
        },
    }


def unhandled(event_id="evt_other_1", event_type="customer.created"):
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": BASE_CREATED,
        "data": {"object": {"id": "cus_999", "object": "customer"}},
    }
