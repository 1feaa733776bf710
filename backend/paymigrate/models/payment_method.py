"""PaymentMethod model for storing customer payment methods."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, func

from paymigrate.core.database import Base
from paymigrate.models.shared import UUIDType, generate_uuid


class PaymentMethodType(str, Enum):
    CARD = "card"
    PAYPAL = "paypal"
    VENMO = "venmo"


class PaymentMethod(Base):
    """PaymentMethod model - a processor payment instrument mirrored locally."""

    __tablename__ = "pay_payment_methods"
    __table_args__ = (
        UniqueConstraint(
            "customer_id", "processor_id", name="uq_pay_payment_methods_customer_processor_id"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType,
        ForeignKey("pay_customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Processor's payment method id (pm_..., card_..., braintree token)
    processor_id = Column(String(255), nullable=False)

    # card / paypal / venmo / processor-specific type
    payment_method_type = Column(String(50), nullable=False)

    default = Column(Boolean, nullable=False, default=False)

    # Extra details (brand, last4, exp_month, exp_year, email, username)
    data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
