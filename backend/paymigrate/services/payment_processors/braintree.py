"""Braintree payment processor client.

Braintree customers keep a list of vaulted payment methods, one of which is
flagged as the default. Payment methods are addressed by token.
"""

from typing import Any

from paymigrate.core.config import settings
from paymigrate.models.customer import PaymentProcessor
from paymigrate.models.payment_method import PaymentMethodType
from paymigrate.schemas.customer import CustomerData
from paymigrate.schemas.payment_method import PaymentMethodDetails
from paymigrate.services.payment_processor import PaymentMethodLookup, PaymentProcessorBase


class BraintreeProcessor(PaymentProcessorBase):
    """Braintree processor client."""

    def __init__(
        self,
        merchant_id: str | None = None,
        public_key: str | None = None,
        private_key: str | None = None,
        environment: str | None = None,
    ):
        self.merchant_id = merchant_id or settings.braintree_merchant_id
        self.public_key = public_key or settings.braintree_public_key
        self.private_key = private_key or settings.braintree_private_key
        self.environment = environment or settings.braintree_environment
        self._braintree: Any = None
        self._gateway: Any = None

    @property
    def braintree(self) -> Any:
        """Lazy-load braintree module."""
        if self._braintree is None:
            try:
                import braintree

                self._braintree = braintree
            except ImportError as e:
                raise ImportError(
                    "braintree package not installed. Run: pip install braintree"
                ) from e
        return self._braintree

    @property
    def gateway(self) -> Any:
        if self._gateway is None:
            braintree = self.braintree
            environment = (
                braintree.Environment.Production
                if self.environment == "production"
                else braintree.Environment.Sandbox
            )
            self._gateway = braintree.BraintreeGateway(
                braintree.Configuration(
                    environment=environment,
                    merchant_id=self.merchant_id,
                    public_key=self.public_key,
                    private_key=self.private_key,
                )
            )
        return self._gateway

    @property
    def processor_name(self) -> PaymentProcessor:
        return PaymentProcessor.BRAINTREE

    def fetch_default_payment_method_id(
        self, processor_id: str | None, data: CustomerData
    ) -> PaymentMethodLookup:
        if not processor_id:
            return PaymentMethodLookup.not_found("customer has no Braintree id")

        try:
            customer = self.gateway.customer.find(processor_id)
        except self.braintree.exceptions.NotFoundError:
            return PaymentMethodLookup.not_found(f"Braintree customer {processor_id} not found")
        except self.braintree.exceptions.braintree_error.BraintreeError as e:
            return PaymentMethodLookup.failed(f"Braintree customer lookup failed: {e!r}")

        default = next(
            (method for method in customer.payment_methods or [] if method.default),
            None,
        )
        if default is None:
            return PaymentMethodLookup.not_found(
                f"Braintree customer {processor_id} has no default payment method"
            )
        return PaymentMethodLookup.found(default.token)

    def fetch_payment_method(
        self, payment_method_id: str, data: CustomerData
    ) -> PaymentMethodDetails:
        """Normalize credit cards, PayPal and Venmo accounts.

        Other vaulted types (Apple Pay, Google Pay, ...) keep only their
        type name.
        """
        payment_method = self.gateway.payment_method.find(payment_method_id)

        if getattr(payment_method, "card_type", None):
            return PaymentMethodDetails(
                processor_id=payment_method_id,
                payment_method_type=PaymentMethodType.CARD.value,
                brand=payment_method.card_type,
                last4=str(payment_method.last_4),
                exp_month=str(payment_method.expiration_month),
                exp_year=str(payment_method.expiration_year),
            )

        if getattr(payment_method, "email", None):
            return PaymentMethodDetails(
                processor_id=payment_method_id,
                payment_method_type=PaymentMethodType.PAYPAL.value,
                brand="PayPal",
                email=payment_method.email,
            )

        if getattr(payment_method, "username", None):
            return PaymentMethodDetails(
                processor_id=payment_method_id,
                payment_method_type=PaymentMethodType.VENMO.value,
                brand="Venmo",
                username=payment_method.username,
            )

        return PaymentMethodDetails(
            processor_id=payment_method_id,
            payment_method_type=type(payment_method).__name__.lower(),
        )
