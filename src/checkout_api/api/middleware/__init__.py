from checkout_api.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    validation_exception_handler,
)
from checkout_api.api.middleware.rate_limiter import RateLimiterMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "RateLimiterMiddleware",
    "validation_exception_handler",
]
