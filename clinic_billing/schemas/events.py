"""
Stripe webhook events handled by the billing reconciler.

Each handled event type has its own model so payloads are validated once, at
the boundary. Everything else parses as UnhandledEvent and is acknowledged
without being inspected.
"""
from pydantic import BaseModel, ValidationError, model_validator
from typing import Any, Dict, Literal, Optional, Union
from datetime import datetime, timezone
import uuid

from clinic_billing.core.errors import EventValidationError

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"


def from_unix(ts: Optional[int]) -> Optional[datetime]:
    """Unix seconds -> naive UTC datetime, matching the DateTime columns."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


class CheckoutMetadata(BaseModel):
    clinic_id: uuid.UUID
    plan: Optional[Literal["monthly", "yearly"]] = None


class CheckoutSessionObject(BaseModel):
    id: str  # cs_xxx
    customer: Optional[str] = None
    subscription: Optional[str] = None  # Empty for payment- and setup-mode sessions
    payment_intent: Optional[str] = None  # Empty for subscription-mode sessions
    amount_total: Optional[int] = None  # Minor units
    currency: Optional[str] = None
    metadata: Optional[CheckoutMetadata] = None

    @model_validator(mode="before")
    @classmethod
    def _metadata_for_subscriptions_only(cls, data: Any) -> Any:
        # One-off and setup sessions are acknowledged unread, whatever metadata they carry
        if isinstance(data, dict) and not data.get("subscription"):
            data = dict(data)
            data["metadata"] = None
        return data

    @model_validator(mode="after")
    def _require_metadata(self) -> "CheckoutSessionObject":
        if self.subscription and self.metadata is None:
            raise ValueError("metadata.clinic_id is required for subscription checkouts")
        return self


class SubscriptionObject(BaseModel):
    id: str  # sub_xxx
    customer: Optional[str] = None
    status: str
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None
    cancel_at_period_end: bool = False

    @model_validator(mode="before")
    @classmethod
    def _period_from_items(cls, data: Any) -> Any:
        # Newer Stripe API versions report billing periods per subscription item
        if not isinstance(data, dict) or data.get("current_period_end") is not None:
            return data
        items = (data.get("items") or {}).get("data") or []
        if items and isinstance(items[0], dict):
            data = dict(data)
            data.setdefault("current_period_start", items[0].get("current_period_start"))
            data["current_period_end"] = items[0].get("current_period_end")
        return data


class InvoiceObject(BaseModel):
    id: str  # in_xxx
    customer: Optional[str] = None
    subscription: Optional[str] = None


class CheckoutSessionData(BaseModel):
    object: CheckoutSessionObject


class SubscriptionData(BaseModel):
    object: SubscriptionObject


class InvoiceData(BaseModel):
    object: InvoiceObject


class _StripeEvent(BaseModel):
    id: str  # evt_xxx
    type: str
    created: int  # Unix seconds, used to order deliveries

    @property
    def created_at(self) -> datetime:
        return from_unix(self.created)


class CheckoutSessionCompleted(_StripeEvent):
    type: Literal["checkout.session.completed"]
    data: CheckoutSessionData


class SubscriptionUpdated(_StripeEvent):
    type: Literal["customer.subscription.updated"]
    data: SubscriptionData


class SubscriptionDeleted(_StripeEvent):
    type: Literal["customer.subscription.deleted"]
    data: SubscriptionData


class InvoicePaymentFailed(_StripeEvent):
    type: Literal["invoice.payment_failed"]
    data: InvoiceData


class UnhandledEvent(_StripeEvent):
    data: Dict[str, Any] = {}


WebhookEvent = Union[
    CheckoutSessionCompleted,
    SubscriptionUpdated,
    SubscriptionDeleted,
    InvoicePaymentFailed,
    UnhandledEvent,
]

_EVENT_MODELS = {
    CHECKOUT_SESSION_COMPLETED: CheckoutSessionCompleted,
    SUBSCRIPTION_UPDATED: SubscriptionUpdated,
    SUBSCRIPTION_DELETED: SubscriptionDeleted,
    INVOICE_PAYMENT_FAILED: InvoicePaymentFailed,
}


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_event(payload: Dict[str, Any]) -> WebhookEvent:
    """
    Build the typed event for a verified payload.

    Raises EventValidationError when a handled event type is missing data it
    needs, e.g. a checkout session without metadata.clinic_id.
    """
    event_type = payload.get("type")
    model = _EVENT_MODELS.get(event_type, UnhandledEvent)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise EventValidationError(
            f"Invalid {event_type or 'untyped'} event {payload.get('id', '?')}: {_describe(e)}"
        ) from e
