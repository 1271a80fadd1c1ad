from enum import StrEnum


class PaymentMethod(StrEnum):
    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    ON_SITE = "ON_SITE"
    OFFLINE = "OFFLINE"
    EXTERNAL = "EXTERNAL"

    @classmethod
    def safe_parse(cls, raw: str | None) -> "PaymentMethod | None":
        """Parse `credit-card`, `CREDIT_CARD` or `credit_card`; `None` when unknown."""
        if raw is None:
            return None
        normalized = raw.strip().upper().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            return None
