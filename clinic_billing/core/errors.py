"""
Errors raised while handling payment provider webhook deliveries.

Unknown or out-of-order subscription events are not errors: the reconciler
reports them as outcomes and the delivery is acknowledged.
"""


class BillingWebhookError(Exception):
    """Base class for webhook deliveries that cannot be processed."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SignatureVerificationError(BillingWebhookError):
    """Missing, malformed, stale or mismatched signature header."""


class EventParseError(BillingWebhookError):
    """Verified body is not a JSON object."""


class EventValidationError(BillingWebhookError):
    """Event lacks data its type requires (e.g. clinic_id on checkout)."""
