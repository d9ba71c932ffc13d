from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from clinic_billing.db.session import Base


class Payment(Base):
    """Append-only ledger row. Corrections are new rows, never updates."""

    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    clinic_id = Column(UUID(as_uuid=True), ForeignKey("clinics.id"), nullable=False, index=True)
    billing_payment_intent_id = Column(String, nullable=False, unique=True, index=True)  # pi_xxx, or cs_xxx when Stripe sets no intent
    amount = Column(Numeric(12, 2), nullable=False)  # Major units, converted once at ingestion
    currency = Column(String(3), default="USD", nullable=False)
    status = Column(String, nullable=False, index=True)  # paid, failed, refunded
    payment_method = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
