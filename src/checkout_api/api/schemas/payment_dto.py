from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from checkout_api.domain.enums import PaymentMethod, PaymentResultType
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken


class TransactionTokenDTO(BaseModel):
    """Handshake data the client needs to continue a payment."""

    reservation_id: str = Field(examples=["5b8f6f0e-2c1a-4b8e-9b43-1f0b6f7c2a11"])
    payment_method: PaymentMethod
    gateway_id: str | None = Field(default=None, examples=["pi_3NfYhX2eZvKYlo2C"])
    client_secret: str | None = None
    redirect_url: str | None = None
    expires_at: datetime | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_token(cls, token: TransactionInitializationToken) -> TransactionTokenDTO:
        return cls(
            reservation_id=token.reservation_id,
            payment_method=token.payment_method,
            gateway_id=token.gateway_id,
            client_secret=token.client_secret,
            redirect_url=token.redirect_url,
            expires_at=token.expires_at,
            payload=dict(token.payload),
        )


class PaymentResultDTO(BaseModel):
    """Outcome of a payment status query."""

    type: PaymentResultType
    gateway_id: str | None = None
    error_code: str | None = None
    redirect_url: str | None = None
    message: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_result(cls, result: PaymentResult) -> PaymentResultDTO:
        return cls(
            type=result.type,
            gateway_id=result.gateway_id,
            error_code=result.error_code,
            redirect_url=result.redirect_url,
            message=result.message,
        )


class ErrorResponseDTO(BaseModel):
    """Error payload used for business, validation and server failures."""

    error: str
    message: str
    request_id: str | None = None
    code: str | None = None
