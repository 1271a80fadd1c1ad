from dataclasses import dataclass

from checkout_api.domain.enums import PaymentResultType


@dataclass(slots=True, frozen=True)
class PaymentResult:
    """Outcome of a payment status query. Always computed, never persisted."""

    type: PaymentResultType
    gateway_id: str | None = None
    error_code: str | None = None
    redirect_url: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if self.type == PaymentResultType.REDIRECT and not self.redirect_url:
            raise ValueError("redirect result requires redirect_url")

    @classmethod
    def successful(cls, gateway_id: str | None = None) -> "PaymentResult":
        return cls(type=PaymentResultType.SUCCESSFUL, gateway_id=gateway_id)

    @classmethod
    def failed(cls, error_code: str, message: str | None = None) -> "PaymentResult":
        return cls(type=PaymentResultType.FAILED, error_code=error_code, message=message)

    @classmethod
    def pending(cls, gateway_id: str | None = None, message: str | None = None) -> "PaymentResult":
        return cls(type=PaymentResultType.PENDING, gateway_id=gateway_id, message=message)

    @classmethod
    def redirect(cls, redirect_url: str, gateway_id: str | None = None) -> "PaymentResult":
        return cls(type=PaymentResultType.REDIRECT, redirect_url=redirect_url, gateway_id=gateway_id)

    @property
    def is_successful(self) -> bool:
        return self.type == PaymentResultType.SUCCESSFUL

    @property
    def is_failed(self) -> bool:
        return self.type == PaymentResultType.FAILED

    @property
    def is_pending(self) -> bool:
        return self.type == PaymentResultType.PENDING
