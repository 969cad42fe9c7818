from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class PaymentOutcome(str, Enum):
    """Resultado reportado por el checkout del gateway"""
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentResultRequest(BaseModel):
    outcome: PaymentOutcome
    payment_id: Optional[str] = Field(None, description="Gateway payment id, required on success")
    signature: Optional[str] = Field(None, description="Checkout signature, required on success")
    error_description: Optional[str] = None


class PaymentResultResponse(BaseModel):
    success: bool
    status: str
    message: str
    order_id: str
    payment_id: Optional[str] = None
