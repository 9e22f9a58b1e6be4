# sima/middleware/auth_middleware.py
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from sima.core.exceptions import TokenInvalidException
from sima.core.metrics import RequestMetric

logger = logging.getLogger(__name__)


def bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """Attaches the decoded access-token identity (if any) and records request timing.

    Never rejects a request; the route dependencies decide what is protected.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.user = None
        token = bearer_token(request)
        if token:
            try:
                request.state.user = request.app.state.token_service.decode_access_token(token)
            except TokenInvalidException:
                request.state.user = None

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors become a 500 further out, after this middleware.
            self._record(request, 500, start)
            raise

        self._record(request, response.status_code, start)
        return response

    @staticmethod
    def _record(request: Request, status_code: int, start: float) -> None:
        user = request.state.user
        metric = RequestMetric(
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            user_id=user.get("id") if user else None,
        )
        metrics = request.app.state.metrics
        metrics.record(metric)
        if metrics.is_slow(metric):
            logger.warning("Slow request %s %s took %.0fms (user=%s)",
                           metric.method, metric.path, metric.duration_ms, metric.user_id)
