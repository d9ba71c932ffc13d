"""
Checkout session creation for the clinic-admin settings page.

The session metadata carries clinic_id and plan; the webhook reconciler
requires both when checkout.session.completed comes back.
"""
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from clinic_billing.api.deps import get_stripe_client
from clinic_billing.core.config import settings
from clinic_billing.db.session import get_db
from clinic_billing.models.clinic import Clinic
from clinic_billing.schemas.checkout import CheckoutSessionRequest, CheckoutSessionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
def create_checkout_session(
    body: CheckoutSessionRequest,
    db: Session = Depends(get_db),
    client: stripe.StripeClient = Depends(get_stripe_client),
):
    clinic = db.query(Clinic).filter(Clinic.id == body.clinicId).first()
    if not clinic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinic not found")

    price_id = settings.price_for_plan(body.plan)
    if not price_id:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"No Stripe price configured for the {body.plan} plan",
        )

    metadata = {"clinic_id": str(clinic.id), "plan": body.plan}
    params = {
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "metadata": metadata,
        "subscription_data": {"metadata": metadata},
        "client_reference_id": str(clinic.id),
        "success_url": f"{settings.FRONTEND_URL}/clinic/settings?checkout=success",
        "cancel_url": f"{settings.FRONTEND_URL}/clinic/settings?checkout=cancel",
    }
    if clinic.billing_customer_id:
        params["customer"] = clinic.billing_customer_id

    try:
        session = client.checkout.sessions.create(params=params)
    except stripe.StripeError as e:
        logger.error(f"[CHECKOUT] Stripe API error for clinic {clinic.id}: {e.user_message or str(e)}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to create checkout session")

    logger.info(f"[CHECKOUT] Created checkout session {session.id} for clinic {clinic.id} ({body.plan})")
    return CheckoutSessionResponse(sessionId=session.id, url=session.url)
