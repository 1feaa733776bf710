"""Pydantic schemas for normalized payment method details."""

from typing import Any

from pydantic import BaseModel, Field

DETAIL_KEYS = ("brand", "last4", "exp_month", "exp_year", "email", "username")
CARD_DETAIL_KEYS = ("last4", "exp_month", "exp_year")


class PaymentMethodDetails(BaseModel):
    """A payment instrument as reported by a processor."""

    processor_id: str = Field(..., min_length=1, max_length=255)
    payment_method_type: str = Field(..., min_length=1, max_length=50)
    brand: str | None = None
    last4: str | None = None
    exp_month: str | None = None
    exp_year: str | None = None
    email: str | None = None
    username: str | None = None

    def as_data(self) -> dict[str, Any]:
        """Detail keys for the stored ``data`` bag."""
        return self.model_dump(include=set(DETAIL_KEYS), exclude_none=True)
