from checkout_api.infrastructure.db.models.purchase_models import (
    EventModel,
    PaymentTransactionModel,
    ReservationModel,
    SubscriptionDescriptorModel,
)

__all__ = [
    "EventModel",
    "PaymentTransactionModel",
    "ReservationModel",
    "SubscriptionDescriptorModel",
]
