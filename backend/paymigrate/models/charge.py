from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.types import JSON

from paymigrate.core.database import Base
from paymigrate.models.shared import UUIDType


class Charge(Base):
    __tablename__ = "pay_charges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(
        UUIDType,
        ForeignKey("pay_customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    processor_id = Column(String(255), nullable=False)
    amount = Column(Integer, nullable=False)
    amount_refunded = Column(Integer, nullable=True)
    payment_method_type = Column(String(50), nullable=True)  # card / paypal
    data = Column(JSON, nullable=True, default=dict)  # brand, last4, exp_month, exp_year, email
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
