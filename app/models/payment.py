from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PaymentTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str  # "free", "standard", "premium"
    name: str
    max_images: int
    price: int  # USD cents
    description: str

    @property
    def requires_payment(self) -> bool:
        return self.price > 0


class AnalysisPermission(BaseModel):
    can_analyze: bool
    payment_required: bool
    tier: PaymentTier
    error: str | None = None


class PaymentRecord(BaseModel):
    """A completed payment, written by the payment processor integration."""

    identity: str
    tier: str  # PaymentTier.name
    amount: int  # USD cents
    reference: str = Field(description="Processor-side payment/session id")
    completed_at: datetime
