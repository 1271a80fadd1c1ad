from dataclasses import dataclass

from checkout_api.domain.enums import PurchaseContextType


@dataclass(slots=True, frozen=True)
class PurchaseContext:
    """An event or a subscription that can be bought through a reservation.

    `identifier` is what appears in URLs (event short name or subscription
    UUID); `context_id` is the storage key reservations refer to.
    """

    type: PurchaseContextType
    identifier: str
    context_id: str
    organization_id: int
    display_name: str = ""
    currency: str = "EUR"

    def owns(self, purchase_context_type: PurchaseContextType, purchase_context_id: str) -> bool:
        return self.type == purchase_context_type and self.context_id == purchase_context_id
