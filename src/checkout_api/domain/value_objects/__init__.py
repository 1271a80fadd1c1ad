from checkout_api.domain.value_objects.payment_result import PaymentResult
from checkout_api.domain.value_objects.transaction_token import TransactionInitializationToken

__all__ = ["PaymentResult", "TransactionInitializationToken"]
