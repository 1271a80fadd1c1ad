from checkout_api.domain.services.reservation_status_classifier import classify

__all__ = ["classify"]
