"""
Stripe webhook signature verification.

Stripe signs "<timestamp>.<raw body>" with HMAC-SHA256 and sends
"t=<timestamp>,v1=<hex digest>" in the Stripe-Signature header. The check must
run on the exact bytes received: a re-serialized JSON body is not guaranteed
to be byte-identical.
"""
import json
import logging
from typing import Any, Dict, Optional

import stripe

from clinic_billing.core.errors import EventParseError, SignatureVerificationError

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300


def verify_signature(
    payload: bytes,
    sig_header: Optional[str],
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> None:
    """Raise SignatureVerificationError unless sig_header signs payload."""
    if not sig_header:
        raise SignatureVerificationError("Missing stripe-signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureVerificationError("Request body is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(body, sig_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise SignatureVerificationError(f"Invalid signature: {e.user_message or str(e)}") from e


def parse_payload(payload: bytes) -> Dict[str, Any]:
    """Decode a verified body. Only call after verify_signature."""
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise EventParseError(f"Invalid payload: {e}") from e
    if not isinstance(data, dict):
        raise EventParseError("Invalid payload: expected a JSON object")
    return data
