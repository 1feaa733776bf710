from paymigrate.repositories.customer_repository import CustomerRepository
from paymigrate.repositories.payment_method_repository import PaymentMethodRepository

__all__ = [
    "CustomerRepository",
    "PaymentMethodRepository",
]
