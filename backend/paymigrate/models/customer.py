from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    text,
)

from paymigrate.core.database import Base
from paymigrate.models.shared import UUIDType, generate_uuid


class PaymentProcessor(str, Enum):
    """Payment backends a customer can be attached to."""

    STRIPE = "stripe"
    BRAINTREE = "braintree"
    PADDLE = "paddle"
    FAKE = "fake_processor"  # No-op backend for processor-less trials


class Customer(Base):
    """One owner's account on one payment processor."""

    __tablename__ = "pay_customers"
    __table_args__ = (
        UniqueConstraint("processor", "processor_id", name="uq_pay_customers_processor_id"),
        # At most one default customer per owner
        Index(
            "ix_pay_customers_owner_default",
            "owner_type",
            "owner_id",
            unique=True,
            sqlite_where=text('"default"'),
            postgresql_where=text('"default"'),
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)

    # Polymorphic owner reference (e.g. "User", 42)
    owner_type = Column(String(255), nullable=False, index=True)
    owner_id = Column(Integer, nullable=False, index=True)

    processor = Column(String(50), nullable=False)
    processor_id = Column(String(255), nullable=True)
    default = Column(Boolean, nullable=False, default=False)

    # Processor-specific extras (stripe_account, braintree_account)
    data = Column(JSON, nullable=False, default=dict)

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
