"""
Stripe webhook handler.
Verifies the signature over the raw body, then reconciles the event into
subscription, clinic and payment state.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clinic_billing.api.deps import get_reconciler
from clinic_billing.core.config import settings
from clinic_billing.core.errors import BillingWebhookError
from clinic_billing.core.signature import parse_payload, verify_signature
from clinic_billing.schemas.events import parse_event
from clinic_billing.services.reconciler import SubscriptionReconciler

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    reconciler: SubscriptionReconciler = Depends(get_reconciler),
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
):
    """
    Handle Stripe webhook events.

    - 200 {"received": true} once the event is applied, ignored, already
      processed, or refers to a subscription we never saw
    - 400 {"error": ...} on bad signature, bad payload, missing required
      metadata, or a database failure; Stripe redelivers with backoff
    """
    # Raw bytes: the signature covers the body exactly as sent
    body = await request.body()
    logger.info(f"[WEBHOOK] Received webhook request (signature header: {stripe_signature is not None})")

    try:
        verify_signature(
            body,
            stripe_signature,
            settings.STRIPE_WEBHOOK_SECRET,
            settings.WEBHOOK_TOLERANCE_SECONDS,
        )
        payload = parse_payload(body)
        event = parse_event(payload)
        logger.info(f"[WEBHOOK] Processing Stripe event: {event.type} (ID: {event.id})")
        reconciler.handle(event, payload)
    except BillingWebhookError as e:
        logger.warning(f"[WEBHOOK] Rejected delivery ({type(e).__name__}): {e.message}")
        return _error(e.message, e.status_code)
    except SQLAlchemyError as e:
        logger.exception("[WEBHOOK] Database error while processing event")
        return _error(f"Database error: {type(e).__name__}")

    return {"received": True}
