from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from clinic_billing.db.session import Base


class BillingEvent(Base):
    __tablename__ = "billing_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    stripe_event_id = Column(String, nullable=False, unique=True, index=True)  # evt_xxx
    type = Column(String, nullable=False, index=True)  # checkout.session.completed, customer.subscription.updated, etc.
    payload = Column(JSON, nullable=False)  # Full verified event payload
    outcome = Column(String, nullable=False)  # applied
    received_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    processed_at = Column(DateTime, nullable=True)
