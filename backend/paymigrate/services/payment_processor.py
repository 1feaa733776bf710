"""Payment processor clients used to backfill default payment methods.

Only two operations are consumed from each processor: looking up a
customer's default payment method id, and fetching that payment method's
details by id.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from paymigrate.core.config import settings
from paymigrate.models.customer import PaymentProcessor
from paymigrate.models.payment_method import PaymentMethodType
from paymigrate.schemas.customer import CustomerData
from paymigrate.schemas.payment_method import PaymentMethodDetails


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class PaymentMethodLookup:
    """Result of asking a processor for a customer's default payment method."""

    status: LookupStatus
    payment_method_id: str | None = None
    reason: str | None = None

    @classmethod
    def found(cls, payment_method_id: str) -> "PaymentMethodLookup":
        return cls(status=LookupStatus.FOUND, payment_method_id=payment_method_id)

    @classmethod
    def not_found(cls, reason: str) -> "PaymentMethodLookup":
        return cls(status=LookupStatus.NOT_FOUND, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "PaymentMethodLookup":
        return cls(status=LookupStatus.ERROR, reason=reason)


class PaymentProcessorBase(ABC):
    """Abstract base class for payment processor clients."""

    @property
    @abstractmethod
    def processor_name(self) -> PaymentProcessor:
        """Return the processor enum value."""
        pass  # pragma: no cover

    @abstractmethod
    def fetch_default_payment_method_id(
        self, processor_id: str | None, data: CustomerData
    ) -> PaymentMethodLookup:
        """Look up the customer's current default payment method id."""
        pass  # pragma: no cover

    @abstractmethod
    def fetch_payment_method(
        self, payment_method_id: str, data: CustomerData
    ) -> PaymentMethodDetails:
        """Fetch a payment method by id and normalize its details."""
        pass  # pragma: no cover


class StripeProcessor(PaymentProcessorBase):
    """Stripe processor client."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self._stripe: Any = None

    @property
    def stripe(self) -> Any:
        """Lazy-load stripe module."""
        if self._stripe is None:
            try:
                import stripe

                stripe.api_key = self.api_key
                self._stripe = stripe
            except ImportError as e:
                raise ImportError("stripe package not installed. Run: pip install stripe") from e
        return self._stripe

    @property
    def processor_name(self) -> PaymentProcessor:
        return PaymentProcessor.STRIPE

    @staticmethod
    def _request_options(data: CustomerData) -> dict[str, Any]:
        # Connect customers live on the connected account
        if data.stripe_account:
            return {"stripe_account": data.stripe_account}
        return {}

    def fetch_default_payment_method_id(
        self, processor_id: str | None, data: CustomerData
    ) -> PaymentMethodLookup:
        """Read invoice_settings.default_payment_method, falling back to default_source."""
        if not processor_id:
            return PaymentMethodLookup.not_found("customer has no Stripe id")

        try:
            customer = self.stripe.Customer.retrieve(processor_id, **self._request_options(data))
        except self.stripe.error.StripeError as e:
            return PaymentMethodLookup.failed(f"Stripe customer lookup failed: {e}")

        if getattr(customer, "deleted", False):
            return PaymentMethodLookup.not_found(f"Stripe customer {processor_id} was deleted")

        invoice_settings = getattr(customer, "invoice_settings", None)
        payment_method = getattr(invoice_settings, "default_payment_method", None)
        payment_method = payment_method or getattr(customer, "default_source", None)
        if not payment_method:
            return PaymentMethodLookup.not_found(
                f"Stripe customer {processor_id} has no default payment method"
            )

        # Expanded objects carry their id
        if not isinstance(payment_method, str):
            payment_method = payment_method.id
        return PaymentMethodLookup.found(payment_method)

    def fetch_payment_method(
        self, payment_method_id: str, data: CustomerData
    ) -> PaymentMethodDetails:
        payment_method = self.stripe.PaymentMethod.retrieve(
            payment_method_id, **self._request_options(data)
        )

        if payment_method.type == PaymentMethodType.CARD.value:
            card = payment_method.card
            return PaymentMethodDetails(
                processor_id=payment_method.id,
                payment_method_type=PaymentMethodType.CARD.value,
                brand=str(card.brand).capitalize(),
                last4=str(card.last4),
                exp_month=str(card.exp_month),
                exp_year=str(card.exp_year),
            )

        return PaymentMethodDetails(
            processor_id=payment_method.id,
            payment_method_type=payment_method.type,
        )


class FakeProcessor(PaymentProcessorBase):
    """No-op processor backing processor-less trials."""

    @property
    def processor_name(self) -> PaymentProcessor:
        return PaymentProcessor.FAKE

    def fetch_default_payment_method_id(
        self, processor_id: str | None, data: CustomerData
    ) -> PaymentMethodLookup:
        return PaymentMethodLookup.not_found("fake processor customers have no payment methods")

    def fetch_payment_method(
        self, payment_method_id: str, data: CustomerData
    ) -> PaymentMethodDetails:
        raise ValueError(f"Fake processor has no payment method {payment_method_id}")


def get_payment_processor(processor: PaymentProcessor) -> PaymentProcessorBase:
    """Factory function to get the appropriate payment processor client."""
    from paymigrate.services.payment_processors.braintree import BraintreeProcessor

    processors: dict[PaymentProcessor, type[PaymentProcessorBase]] = {
        PaymentProcessor.STRIPE: StripeProcessor,
        PaymentProcessor.BRAINTREE: BraintreeProcessor,
        PaymentProcessor.FAKE: FakeProcessor,
    }

    processor_class = processors.get(processor)
    if not processor_class:
        raise ValueError(f"Unsupported payment processor: {processor}")

    return processor_class()
