from enum import StrEnum


class RoutingOutcome(StrEnum):
    """User-facing destination of a reservation; values are URL segments."""

    BOOK = "book"
    OVERVIEW = "overview"
    SUCCESS = "success"
    WAITING_PAYMENT = "waiting-payment"
    DEFERRED_PAYMENT = "deferred-payment"
    PROCESSING_PAYMENT = "processing-payment"
    ERROR = "error"
    NOT_FOUND = "not-found"
