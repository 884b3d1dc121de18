"""Request admission middleware.

Every inbound request passes through one shared ``AdmissionGate``. Denied
requests are answered with 429 before any route handler runs.
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from inventory.app.core.logging import get_logger
from inventory.app.middleware.rate_limit.bucket import AdmissionGate, TokenBucket
from inventory.app.middleware.rate_limit.models import AdmissionDecision

logger = get_logger(__name__)

__all__ = [
    "AdmissionDecision",
    "AdmissionGate",
    "TokenBucket",
    "RateLimitMiddleware",
    "rate_limited_response",
]


def rate_limited_response(decision: AdmissionDecision) -> JSONResponse:
    """Build the 429 response for a denied request."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded. Please try again later.",
            "retry_after": decision.retry_after_text,
        },
        headers={
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": "0",
            "Retry-After": decision.retry_after_header,
        },
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce the global admission quota.

    The gate is injected by the application factory so that the whole
    process shares one bucket.
    """

    def __init__(self, app, gate: AdmissionGate):
        super().__init__(app)
        self.gate = gate

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with admission control."""
        decision = self.gate.admit()

        if not decision.allowed:
            logger.debug(
                "Request rejected by admission gate",
                extra={"path": request.url.path, "method": request.method},
            )
            return rate_limited_response(decision)

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)

        return response
