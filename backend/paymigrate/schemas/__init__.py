from paymigrate.schemas.customer import CustomerData
from paymigrate.schemas.payment_method import PaymentMethodDetails

__all__ = [
    "CustomerData",
    "PaymentMethodDetails",
]
