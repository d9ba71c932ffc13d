from clinic_billing.schemas.events import (
    WebhookEvent, CheckoutSessionCompleted, SubscriptionUpdated, SubscriptionDeleted,
    InvoicePaymentFailed, UnhandledEvent, parse_event,
)
from clinic_billing.schemas.checkout import CheckoutSessionRequest, CheckoutSessionResponse

__all__ = [
    "WebhookEvent", "CheckoutSessionCompleted", "SubscriptionUpdated", "SubscriptionDeleted",
    "InvoicePaymentFailed", "UnhandledEvent", "parse_event",
    "CheckoutSessionRequest", "CheckoutSessionResponse",
]
