from functools import lru_cache

import stripe
from fastapi import Depends
from sqlalchemy.orm import Session

from clinic_billing.core.config import settings
from clinic_billing.db.session import get_db
from clinic_billing.services.reconciler import SubscriptionReconciler


@lru_cache(maxsize=1)
def get_stripe_client() -> stripe.StripeClient:
    """Stripe API client built from STRIPE_SECRET_KEY. Overridden in tests."""
    return stripe.StripeClient(settings.STRIPE_SECRET_KEY)


def get_reconciler(db: Session = Depends(get_db)) -> SubscriptionReconciler:
    return SubscriptionReconciler(db)
