from checkout_api.domain.entities import PurchaseContext, Reservation
from checkout_api.domain.enums import PaymentMethod, ReservationStatus
from checkout_api.domain.ports import PaymentParams
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken


class OfflinePaymentProvider:
    """Bank transfer and pay-on-site: nothing to call, the payment is confirmed by staff.

    The status comes from the stored reservation, which the back office moves
    to `COMPLETE` once the money is received.
    """

    def __init__(self, payment_method: PaymentMethod, instructions: str = "") -> None:
        self._payment_method = payment_method
        self._instructions = instructions

    async def initialize(
        self,
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> TransactionInitializationToken:
        return TransactionInitializationToken(
            reservation_id=reservation.id,
            payment_method=self._payment_method,
            expires_at=reservation.validity,
            payload={
                "payment_reference": self.payment_reference(reservation),
                "amount_cents": reservation.final_price_cents,
                "currency": reservation.currency or context.currency,
                "instructions": self._instructions,
            },
        )

    async def check_status(
        self,
        reservation: Reservation,
        token: TransactionInitializationToken,
        *,
        force: bool = False,
    ) -> PaymentResult:
        if reservation.status == ReservationStatus.COMPLETE:
            return PaymentResult.successful()
        if reservation.status in (ReservationStatus.CANCELLED, ReservationStatus.CREDIT_NOTE_ISSUED):
            return PaymentResult.failed("reservation-cancelled")
        return PaymentResult.pending(message="Waiting for payment confirmation")

    @staticmethod
    def payment_reference(reservation: Reservation) -> str:
        return reservation.id.replace("-", "")[:8].upper()
