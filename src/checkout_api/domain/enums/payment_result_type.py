from enum import StrEnum


class PaymentResultType(StrEnum):
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    PENDING = "PENDING"
    REDIRECT = "REDIRECT"
