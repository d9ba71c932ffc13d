from pydantic import BaseModel
from typing import Literal, Optional
import uuid


class CheckoutSessionRequest(BaseModel):
    clinicId: uuid.UUID
    plan: Literal["monthly", "yearly"]


class CheckoutSessionResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None
