from paymigrate.models.charge import Charge
from paymigrate.models.customer import Customer, PaymentProcessor
from paymigrate.models.payment_method import PaymentMethod, PaymentMethodType
from paymigrate.models.subscription import Subscription, SubscriptionStatus

__all__ = [
    "Charge",
    "Customer",
    "PaymentMethod",
    "PaymentMethodType",
    "PaymentProcessor",
    "Subscription",
    "SubscriptionStatus",
]
