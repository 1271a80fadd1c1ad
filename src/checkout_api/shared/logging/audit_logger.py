import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any


class AuditLogger:
    """Structured audit logger for payment actions with sensitive-data masking.

    Example:
        ```python
        audit = AuditLogger()
        audit.log_transaction_initialized(reservation_id="b1c2...", payment_method="CREDIT_CARD")
        ```
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("checkout_api.audit")
        self._clock = clock or (lambda: datetime.now(UTC))

    def log_transaction_initialized(
        self,
        *,
        reservation_id: str,
        payment_method: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Emit payment initialization audit event."""
        self._emit(
            action="TRANSACTION_INITIALIZED",
            reservation_id=reservation_id,
            payment_method=payment_method,
            context=context or {},
        )

    def log_transaction_rejected(
        self,
        *,
        reservation_id: str,
        payment_method: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Emit audit event for an initialization refused by the provider."""
        self._emit(
            action="TRANSACTION_REJECTED",
            reservation_id=reservation_id,
            payment_method=payment_method,
            context=context or {},
            level=logging.WARNING,
        )

    def log_status_checked(
        self,
        *,
        reservation_id: str,
        payment_method: str,
        forced: bool,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Emit status query audit event; forced checks are flagged separately."""
        self._emit(
            action="TRANSACTION_STATUS_FORCE_CHECKED" if forced else "TRANSACTION_STATUS_CHECKED",
            reservation_id=reservation_id,
            payment_method=payment_method,
            context=context or {},
        )

    def _emit(
        self,
        *,
        action: str,
        reservation_id: str,
        payment_method: str,
        context: Mapping[str, Any],
        level: int = logging.INFO,
    ) -> None:
        event = {
            "timestamp": self._clock().astimezone(UTC).isoformat(),
            "action": action,
            "reservation_id": reservation_id,
            "payment_method": payment_method,
            "context": self.mask_sensitive_data(dict(context)),
        }
        self._logger.log(level, "audit_event", extra={"audit_event": event})

    @classmethod
    def mask_sensitive_data(cls, value: Any, key: str | None = None) -> Any:
        """Recursively mask sensitive values based on key names."""
        if isinstance(value, dict):
            return {k: cls.mask_sensitive_data(v, key=k) for k, v in value.items()}
        if isinstance(value, list):
            return [cls.mask_sensitive_data(item, key=key) for item in value]
        if isinstance(value, tuple):
            return tuple(cls.mask_sensitive_data(item, key=key) for item in value)
        if isinstance(value, str) and cls._is_sensitive_key(key):
            return cls._mask_string(value, key or "")
        return value

    @staticmethod
    def _is_sensitive_key(key: str | None) -> bool:
        if not key:
            return False
        lowered = key.lower()
        sensitive_tokens = (
            "email",
            "phone",
            "card",
            "cvv",
            "token",
            "password",
            "secret",
            "iban",
        )
        return any(token in lowered for token in sensitive_tokens)

    @staticmethod
    def _mask_string(raw: str, key: str) -> str:
        lowered_key = key.lower()
        if "email" in lowered_key:
            local_part, _, domain = raw.partition("@")
            if not domain:
                return "***"
            prefix = (local_part[:1] or "*")
            return f"{prefix}***@{domain}"
        if "secret" in lowered_key and "_secret_" in raw:
            # Keep the intent id part of a client secret for correlation.
            return f"{raw.split('_secret_', 1)[0]}_secret_***"
        return "***MASKED***"
