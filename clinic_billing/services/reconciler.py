"""
Mirrors Stripe subscription lifecycle events onto clinics, subscriptions and
payments.

Stripe is the source of truth for billing state: nothing here initiates a
change, it only applies what an event reports. Deliveries are at-least-once
and may arrive out of order, so:

- every write is keyed by a Stripe id (upsert / conditional update), never a
  blind insert;
- a subscription update or failed invoice older than the last applied event
  is skipped;
- all writes for one event, plus its billing_events ledger row, commit in a
  single transaction.
"""
import enum
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import or_, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from clinic_billing.core.errors import EventValidationError
from clinic_billing.models.billing_event import BillingEvent
from clinic_billing.models.clinic import Clinic
from clinic_billing.models.payment import Payment
from clinic_billing.models.subscription import Subscription
from clinic_billing.schemas.events import (
    CHECKOUT_SESSION_COMPLETED,
    INVOICE_PAYMENT_FAILED,
    SUBSCRIPTION_DELETED,
    SUBSCRIPTION_UPDATED,
    CheckoutSessionCompleted,
    InvoicePaymentFailed,
    SubscriptionDeleted,
    SubscriptionUpdated,
    WebhookEvent,
    from_unix,
)
from clinic_billing.services.subscription_state import (
    ClinicSubscriptionStatus,
    SubscriptionStatus,
    clinic_status_for,
    is_terminal,
    normalize_subscription_status,
    period_end_for,
)
from clinic_billing.utils.money import normalize_currency, to_major_units

logger = logging.getLogger(__name__)

# Clinic states an invoice failure must not overwrite
_TERMINAL_CLINIC_STATUSES = (
    ClinicSubscriptionStatus.INACTIVE.value,
    ClinicSubscriptionStatus.CANCELLED.value,
)


class ReconcileOutcome(str, enum.Enum):
    APPLIED = "applied"
    IGNORED = "ignored"  # Event type we do not act on
    NOT_FOUND = "not_found"  # No local row for the event's subscription/customer
    STALE = "stale"  # Older than the last applied event, or subscription already cancelled
    DUPLICATE = "duplicate"  # Event id already in the ledger


def _insert(db: Session, model):
    """Dialect insert exposing on_conflict_do_update / on_conflict_do_nothing."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)


class SubscriptionReconciler:
    def __init__(self, db: Session):
        self.db = db
        self._handlers = {
            CHECKOUT_SESSION_COMPLETED: self._checkout_completed,
            SUBSCRIPTION_UPDATED: self._subscription_updated,
            SUBSCRIPTION_DELETED: self._subscription_deleted,
            INVOICE_PAYMENT_FAILED: self._invoice_payment_failed,
        }

    def handle(self, event: WebhookEvent, payload: Optional[Dict[str, Any]] = None) -> ReconcileOutcome:
        """
        Apply one verified event and commit.

        Any exception rolls back every write made for the event and is
        re-raised so the caller can ask Stripe to redeliver.
        """
        handler = self._handlers.get(event.type)
        try:
            if self._already_processed(event.id):
                logger.info(f"[WEBHOOK] Event {event.id} ({event.type}) already processed - skipping")
                self.db.rollback()
                return ReconcileOutcome.DUPLICATE
            if handler is None:
                logger.info(f"[WEBHOOK] Unhandled event type: {event.type}")
                outcome = ReconcileOutcome.IGNORED
            else:
                outcome = handler(event)
            # Skipped events leave no trace in the store; only applied ones need dedup
            if outcome == ReconcileOutcome.APPLIED:
                self._record(event, outcome, payload if payload is not None else event.model_dump(mode="json"))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"[WEBHOOK] Event {event.id} ({event.type}) -> {outcome.value}")
        return outcome

    # -- ledger ---------------------------------------------------------

    def _already_processed(self, stripe_event_id: str) -> bool:
        return self.db.query(BillingEvent.id).filter(
            BillingEvent.stripe_event_id == stripe_event_id
        ).first() is not None

    def _record(self, event: WebhookEvent, outcome: ReconcileOutcome, payload: Dict[str, Any]):
        stmt = _insert(self.db, BillingEvent).values(
            id=uuid.uuid4(),
            stripe_event_id=event.id,
            type=event.type,
            payload=payload,
            outcome=outcome.value,
            received_at=datetime.utcnow(),
            processed_at=datetime.utcnow(),
        )
        # A concurrent delivery of the same event may have recorded it first
        self.db.execute(stmt.on_conflict_do_nothing(index_elements=["stripe_event_id"]))

    # -- event handlers -------------------------------------------------

    def _checkout_completed(self, event: CheckoutSessionCompleted) -> ReconcileOutcome:
        session = event.data.object
        if not session.subscription:
            logger.warning(f"[WEBHOOK] Checkout {session.id} has no subscription (one-off or setup session) - ignoring")
            return ReconcileOutcome.IGNORED

        clinic_id = session.metadata.clinic_id
        plan = session.metadata.plan

        clinic = self.db.query(Clinic).filter(Clinic.id == clinic_id).first()
        if clinic is None:
            raise EventValidationError(
                f"Checkout session {session.id} references unknown clinic {clinic_id}"
            )

        now = datetime.utcnow()
        period_start = event.created_at
        period_end = period_end_for(plan, period_start)

        stmt = _insert(self.db, Subscription).values(
            id=uuid.uuid4(),
            clinic_id=clinic_id,
            billing_subscription_id=session.subscription,
            billing_customer_id=session.customer,
            plan=plan,
            status=SubscriptionStatus.ACTIVE.value,
            current_period_start=period_start,
            current_period_end=period_end,
            cancel_at_period_end=False,
            last_event_at=event.created_at,
            created_at=now,
            updated_at=now,
        )
        # Redelivery keeps lifecycle fields a later event may already have changed
        stmt = stmt.on_conflict_do_update(
            index_elements=["billing_subscription_id"],
            set_=dict(
                clinic_id=stmt.excluded.clinic_id,
                billing_customer_id=stmt.excluded.billing_customer_id,
                plan=stmt.excluded.plan,
                updated_at=now,
            ),
        )
        self.db.execute(stmt)

        subscription = self.db.query(Subscription).populate_existing().filter(
            Subscription.billing_subscription_id == session.subscription
        ).one()

        if is_terminal(subscription.status):
            logger.warning(
                f"[WEBHOOK] Checkout {session.id} replayed for cancelled subscription "
                f"{session.subscription} - clinic {clinic_id} left unchanged"
            )
        else:
            clinic.subscription_plan = plan
            clinic.billing_customer_id = session.customer
            clinic.billing_subscription_id = session.subscription
            clinic.subscription_expires_at = subscription.current_period_end
            self._derive_clinic_status(clinic, subscription.status)

        currency = normalize_currency(session.currency)
        payment = _insert(self.db, Payment).values(
            id=uuid.uuid4(),
            clinic_id=clinic_id,
            # Subscription-mode sessions carry no payment intent; the session id is just as unique
            billing_payment_intent_id=session.payment_intent or session.id,
            amount=to_major_units(session.amount_total, currency),
            currency=currency,
            status="paid",
            payment_method="card",
            description=f"Subscription payment - {plan or 'unknown plan'}",
            created_at=event.created_at,
        )
        self.db.execute(payment.on_conflict_do_nothing(index_elements=["billing_payment_intent_id"]))

        logger.info(
            f"[WEBHOOK] Checkout {session.id}: clinic {clinic_id} subscribed to {plan} "
            f"({session.subscription})"
        )
        return ReconcileOutcome.APPLIED

    def _subscription_updated(self, event: SubscriptionUpdated) -> ReconcileOutcome:
        data = event.data.object
        subscription = self._find_subscription(data.id)
        if subscription is None:
            logger.warning(
                f"[WEBHOOK] Update for unknown subscription {data.id} (event {event.id}) - "
                f"lost or out-of-order event, skipping"
            )
            return ReconcileOutcome.NOT_FOUND

        if is_terminal(subscription.status):
            logger.info(f"[WEBHOOK] Subscription {data.id} already cancelled - ignoring update {event.id}")
            return ReconcileOutcome.STALE

        new_status = normalize_subscription_status(data.status)
        values = dict(
            status=new_status,
            cancel_at_period_end=data.cancel_at_period_end,
            last_event_at=event.created_at,
            updated_at=datetime.utcnow(),
        )
        if data.current_period_start is not None:
            values["current_period_start"] = from_unix(data.current_period_start)
        if data.current_period_end is not None:
            values["current_period_end"] = from_unix(data.current_period_end)

        # Last writer wins by Stripe's event timestamp, checked atomically in the row update
        result = self.db.execute(
            update(Subscription)
            .where(
                Subscription.id == subscription.id,
                Subscription.status != SubscriptionStatus.CANCELLED.value,
                or_(
                    Subscription.last_event_at.is_(None),
                    Subscription.last_event_at <= event.created_at,
                ),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                f"[WEBHOOK] Stale update {event.id} for subscription {data.id} "
                f"(event at {event.created_at}, last applied {subscription.last_event_at}) - skipping"
            )
            return ReconcileOutcome.STALE

        clinic_values = {}
        clinic_status = clinic_status_for(new_status)
        if clinic_status is not None:
            clinic_values["subscription_status"] = clinic_status.value
        if "current_period_end" in values:
            clinic_values["subscription_expires_at"] = values["current_period_end"]
        if clinic_values:
            self._update_clinic_for_subscription(subscription, **clinic_values)

        return ReconcileOutcome.APPLIED

    def _subscription_deleted(self, event: SubscriptionDeleted) -> ReconcileOutcome:
        data = event.data.object
        subscription = self._find_subscription(data.id)
        if subscription is None:
            logger.warning(
                f"[WEBHOOK] Delete for unknown subscription {data.id} (event {event.id}) - skipping"
            )
            return ReconcileOutcome.NOT_FOUND

        last_event_at = event.created_at
        if subscription.last_event_at and subscription.last_event_at > last_event_at:
            last_event_at = subscription.last_event_at

        self.db.execute(
            update(Subscription)
            .where(Subscription.id == subscription.id)
            .values(
                status=SubscriptionStatus.CANCELLED.value,
                last_event_at=last_event_at,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        self._update_clinic_for_subscription(
            subscription, subscription_status=ClinicSubscriptionStatus.INACTIVE.value
        )
        return ReconcileOutcome.APPLIED

    def _invoice_payment_failed(self, event: InvoicePaymentFailed) -> ReconcileOutcome:
        invoice = event.data.object
        if not invoice.customer:
            logger.warning(f"[WEBHOOK] Invoice {invoice.id} has no customer - skipping")
            return ReconcileOutcome.NOT_FOUND

        clinics = self.db.query(Clinic).filter(Clinic.billing_customer_id == invoice.customer).all()
        if not clinics:
            logger.warning(
                f"[WEBHOOK] Payment failed for unknown customer {invoice.customer} "
                f"(invoice {invoice.id}) - skipping"
            )
            return ReconcileOutcome.NOT_FOUND

        subscription = self._find_subscription(invoice.subscription) if invoice.subscription else None
        if subscription is not None:
            return self._subscription_payment_failed(event, subscription)

        # No local subscription row to order against: the customer's clinics take the failure
        for clinic in clinics:
            if clinic.subscription_status in _TERMINAL_CLINIC_STATUSES:
                logger.info(
                    f"[WEBHOOK] Clinic {clinic.id} is {clinic.subscription_status} - "
                    f"not marking past_due for invoice {invoice.id}"
                )
                continue
            clinic.subscription_status = ClinicSubscriptionStatus.PAST_DUE.value
            logger.info(f"[WEBHOOK] Clinic {clinic.id} marked past_due (invoice {invoice.id})")
        return ReconcileOutcome.APPLIED

    def _subscription_payment_failed(self, event: InvoicePaymentFailed, subscription: Subscription) -> ReconcileOutcome:
        invoice = event.data.object
        if is_terminal(subscription.status):
            logger.info(
                f"[WEBHOOK] Subscription {subscription.billing_subscription_id} already cancelled - "
                f"ignoring failed invoice {invoice.id}"
            )
            return ReconcileOutcome.STALE

        new_status = subscription.status
        if new_status == SubscriptionStatus.ACTIVE.value:
            new_status = SubscriptionStatus.PAST_DUE.value

        # Same last-writer-wins rule as subscription updates
        result = self.db.execute(
            update(Subscription)
            .where(
                Subscription.id == subscription.id,
                Subscription.status != SubscriptionStatus.CANCELLED.value,
                or_(
                    Subscription.last_event_at.is_(None),
                    Subscription.last_event_at <= event.created_at,
                ),
            )
            .values(status=new_status, last_event_at=event.created_at, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                f"[WEBHOOK] Stale failed invoice {invoice.id} (event {event.id} at {event.created_at}, "
                f"last applied {subscription.last_event_at}) - skipping"
            )
            return ReconcileOutcome.STALE

        clinic_status = clinic_status_for(new_status)
        if clinic_status is not None:
            self._update_clinic_for_subscription(
                subscription,
                Clinic.subscription_status.notin_(_TERMINAL_CLINIC_STATUSES),
                subscription_status=clinic_status.value,
            )
        logger.info(
            f"[WEBHOOK] Subscription {subscription.billing_subscription_id} is {new_status} "
            f"after failed invoice {invoice.id}"
        )
        return ReconcileOutcome.APPLIED

    # -- helpers --------------------------------------------------------

    def _find_subscription(self, billing_subscription_id: str) -> Optional[Subscription]:
        return self.db.query(Subscription).populate_existing().filter(
            Subscription.billing_subscription_id == billing_subscription_id
        ).first()

    def _update_clinic_for_subscription(self, subscription: Subscription, *conditions, **values):
        # Only the clinic currently billed through this subscription follows it
        values["updated_at"] = datetime.utcnow()
        self.db.execute(
            update(Clinic)
            .where(
                Clinic.id == subscription.clinic_id,
                Clinic.billing_subscription_id == subscription.billing_subscription_id,
                *conditions,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _derive_clinic_status(clinic: Clinic, subscription_status: str):
        clinic_status = clinic_status_for(subscription_status)
        if clinic_status is not None:
            clinic.subscription_status = clinic_status.value
