import logging
import re
from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from checkout_api.api.schemas import ErrorResponseDTO
from checkout_api.application import (
    InvalidPurchaseRequestError,
    PurchaseNotFoundError,
    TransactionAlreadyInitiatedError,
)
from checkout_api.domain.ports import ProviderRejectedError, ProviderUnavailableError
from checkout_api.infrastructure.repositories import ReservationNotFoundError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _mask_sensitive(text: str) -> str:
    masked = re.sub(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})", r"\1***@\2", text)
    masked = re.sub(r"\b\d{12,19}\b", "****MASKED_CARD****", masked)
    masked = re.sub(r"\b(pi_[A-Za-z0-9]+)_secret_[A-Za-z0-9]+", r"\1_secret_***", masked)
    masked = re.sub(r"(?i)(cvv|password|token|secret)\s*[:=]\s*[^,\s]+", r"\1=***", masked)
    return masked


def _error_response(
    request: Request,
    status_code: int,
    *,
    error: str,
    message: str,
    code: str,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponseDTO(
            error=error,
            message=message,
            request_id=request.headers.get(REQUEST_ID_HEADER),
            code=code,
        ).model_dump(),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Translate application exceptions into `ErrorResponseDTO` payloads."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except RequestValidationError as exc:
            self._log_exception("validation_error", request, exc)
            return _error_response(
                request,
                422,
                error="Validation error",
                message="Request validation failed",
                code="VALIDATION_ERROR",
            )
        except InvalidPurchaseRequestError as exc:
            self._log_warning("invalid_request", request, exc)
            return _error_response(
                request,
                400,
                error="Bad request",
                message=str(exc),
                code="INVALID_REQUEST",
            )
        except (PurchaseNotFoundError, ReservationNotFoundError) as exc:
            self._log_warning("not_found", request, exc)
            return _error_response(
                request,
                404,
                error="Not found",
                message="Purchase context or reservation not found",
                code="NOT_FOUND",
            )
        except TransactionAlreadyInitiatedError as exc:
            self._log_warning("transaction_conflict", request, exc)
            return _error_response(
                request,
                409,
                error="Conflict",
                message=str(exc),
                code="TRANSACTION_ALREADY_INITIATED",
            )
        except ProviderRejectedError as exc:
            self._log_warning("payment_rejected", request, exc)
            return _error_response(
                request,
                422,
                error="Payment rejected",
                message=exc.reason,
                code="PAYMENT_REJECTED",
            )
        except ProviderUnavailableError as exc:
            self._log_exception("provider_unavailable", request, exc)
            return _error_response(
                request,
                502,
                error="Bad gateway",
                message="Payment provider unavailable. Payment was not started.",
                code="PROVIDER_UNAVAILABLE",
            )
        except SQLAlchemyError as exc:
            self._log_exception("database_error", request, exc)
            return _error_response(
                request,
                500,
                error="Internal server error",
                message="Unable to process request. Please try again later.",
                code="DATABASE_ERROR",
            )
        except Exception as exc:
            self._log_exception("unexpected_error", request, exc)
            return _error_response(
                request,
                500,
                error="Internal server error",
                message="Unable to process request. Please try again later.",
                code="INTERNAL_ERROR",
            )

    @staticmethod
    def _log_warning(error_type: str, request: Request, exc: Exception) -> None:
        logger.warning(
            "api_error type=%s method=%s path=%s detail=%s",
            error_type,
            request.method,
            request.url.path,
            _mask_sensitive(str(exc)),
        )

    @staticmethod
    def _log_exception(error_type: str, request: Request, exc: Exception) -> None:
        logger.exception(
            "api_error type=%s method=%s path=%s detail=%s",
            error_type,
            request.method,
            request.url.path,
            _mask_sensitive(str(exc)),
        )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    ErrorHandlerMiddleware._log_exception("validation_error", request, exc)
    return _error_response(
        request,
        422,
        error="Validation error",
        message="Request validation failed",
        code="VALIDATION_ERROR",
    )
