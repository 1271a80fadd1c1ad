from enum import StrEnum


class PurchaseContextType(StrEnum):
    EVENT = "event"
    SUBSCRIPTION = "subscription"

    @property
    def url_component(self) -> str:
        return self.value

    @classmethod
    def from_url_component(cls, raw: str) -> "PurchaseContextType | None":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None
