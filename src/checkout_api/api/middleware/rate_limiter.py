import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from checkout_api.api.schemas import ErrorResponseDTO

WINDOW_SECONDS = 60.0


class SlidingWindowCounter:
    """Request timestamps per key over a sliding window.

    Keys whose window has emptied are dropped by a sweep that runs at most
    once per window, so idle clients and one-off paths do not accumulate.
    """

    def __init__(self, window_seconds: float = WINDOW_SECONDS) -> None:
        self._window_seconds = window_seconds
        self._windows: dict[str, deque[float]] = {}
        self._last_sweep: float | None = None

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str, limit: int, now: float) -> bool:
        """Record a request for `key`; `False` when the limit is already reached."""
        cutoff = now - self._window_seconds
        self._sweep(now, cutoff)
        window = self._windows.setdefault(key, deque())
        self._prune(window, cutoff)
        if len(window) >= limit:
            return False
        window.append(now)
        return True

    def _sweep(self, now: float, cutoff: float) -> None:
        if self._last_sweep is not None and now - self._last_sweep < self._window_seconds:
            return
        self._last_sweep = now
        for key in list(self._windows):
            window = self._windows[key]
            self._prune(window, cutoff)
            if not window:
                del self._windows[key]

    @staticmethod
    def _prune(window: deque[float], cutoff: float) -> None:
        while window and window[0] <= cutoff:
            window.popleft()


class RateLimiterMiddleware(BaseHTTPMiddleware):
    """Apply in-memory per-IP/per-endpoint request limits.

    Payment initialization POSTs share one tighter limit per client, whatever
    the reservation in the path.
    """

    def __init__(  # type: ignore[no-untyped-def]
        self,
        app,
        *,
        default_limit_per_minute: int = 120,
        payment_init_limit_per_minute: int = 20,
        time_provider: Callable[[], float] | None = None,
        counter: SlidingWindowCounter | None = None,
    ) -> None:
        super().__init__(app)
        if default_limit_per_minute <= 0:
            raise ValueError("default_limit_per_minute must be greater than zero")
        if payment_init_limit_per_minute <= 0:
            raise ValueError("payment_init_limit_per_minute must be greater than zero")
        self._default_limit = default_limit_per_minute
        self._payment_init_limit = payment_init_limit_per_minute
        self._time_provider = time_provider or monotonic
        self._counter = counter or SlidingWindowCounter()
        self._lock = asyncio.Lock()

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Reject requests with HTTP 429 when the configured window is exceeded."""
        payment_init = is_payment_init(request)
        limit = self._payment_init_limit if payment_init else self._default_limit
        key = self._build_key(request, payment_init)

        async with self._lock:
            allowed = self._counter.hit(key, limit, self._time_provider())
        if not allowed:
            return JSONResponse(
                status_code=429,
                content=ErrorResponseDTO(
                    error="Too many requests",
                    message="Rate limit exceeded. Please retry later.",
                    code="RATE_LIMIT_EXCEEDED",
                ).model_dump(),
            )

        return await call_next(request)

    @staticmethod
    def _build_key(request: Request, payment_init: bool) -> str:
        client_ip = request.client.host if request.client is not None else "unknown"
        if payment_init:
            return f"{client_ip}:payment-init"
        return f"{client_ip}:{request.method.upper()}:{request.url.path}"


def is_payment_init(request: Request) -> bool:
    path = request.url.path.rstrip("/")
    return (
        request.method.upper() == "POST"
        and path.startswith("/api/")
        and "/payment/" in path
        and path.endswith("/init")
    )
