from clinic_billing.models.clinic import Clinic
from clinic_billing.models.subscription import Subscription
from clinic_billing.models.payment import Payment
from clinic_billing.models.billing_event import BillingEvent

__all__ = ["Clinic", "Subscription", "Payment", "BillingEvent"]
