import hashlib

from checkout_api.domain.enums import PaymentMethod


def idempotency_key_for(reservation_id: str, payment_method: PaymentMethod) -> str:
    """Stable provider idempotency key: one initialization per reservation and method."""
    digest = hashlib.sha256(f"{reservation_id}:{payment_method.value}".encode()).hexdigest()
    return f"init-{digest[:48]}"
