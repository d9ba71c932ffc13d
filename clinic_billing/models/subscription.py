from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from clinic_billing.db.session import Base


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    clinic_id = Column(UUID(as_uuid=True), ForeignKey("clinics.id"), nullable=False, index=True)
    billing_subscription_id = Column(String, nullable=False, unique=True, index=True)  # Join key for provider events
    billing_customer_id = Column(String, nullable=True, index=True)
    plan = Column(String, nullable=True)  # monthly, yearly
    status = Column(String, nullable=False, index=True)  # active, past_due, unpaid, cancelled
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True, index=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    last_event_at = Column(DateTime, nullable=True)  # Provider "created" of the last applied event
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
