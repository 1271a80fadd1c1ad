from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from checkout_api.domain.enums import PaymentMethod


@dataclass(slots=True, frozen=True)
class TransactionInitializationToken:
    """Provider handshake data the client needs to continue a payment."""

    reservation_id: str
    payment_method: PaymentMethod
    gateway_id: str | None = None
    client_secret: str | None = None
    redirect_url: str | None = None
    expires_at: datetime | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_storage(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "payment_method": self.payment_method.value,
            "gateway_id": self.gateway_id,
            "client_secret": self.client_secret,
            "redirect_url": self.redirect_url,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "payload": dict(self.payload),
        }

    @classmethod
    def from_storage(cls, data: dict[str, Any]) -> "TransactionInitializationToken":
        expires_at = data.get("expires_at")
        return cls(
            reservation_id=str(data["reservation_id"]),
            payment_method=PaymentMethod(data["payment_method"]),
            gateway_id=data.get("gateway_id"),
            client_secret=data.get("client_secret"),
            redirect_url=data.get("redirect_url"),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            payload=dict(data.get("payload") or {}),
        )
