from sqlalchemy import Column, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from clinic_billing.db.session import Base


class Clinic(Base):
    __tablename__ = "clinics"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    # pending, active, past_due, inactive, cancelled - written only by the billing reconciler
    subscription_status = Column(String, default="pending", nullable=False, index=True)
    subscription_plan = Column(String, nullable=True)  # monthly, yearly
    subscription_expires_at = Column(DateTime, nullable=True)
    billing_customer_id = Column(String, nullable=True, index=True)  # cus_xxx
    billing_subscription_id = Column(String, nullable=True, index=True)  # sub_xxx
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
