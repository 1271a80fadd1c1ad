from checkout_api.api.schemas.payment_dto import (
    ErrorResponseDTO,
    PaymentResultDTO,
    TransactionTokenDTO,
)

__all__ = [
    "ErrorResponseDTO",
    "PaymentResultDTO",
    "TransactionTokenDTO",
]
