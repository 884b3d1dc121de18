"""Middleware package for the inventory service."""

from inventory.app.middleware.auth import CurrentUser, require_jwt
from inventory.app.middleware.rate_limit import (
    AdmissionGate,
    RateLimitMiddleware,
    TokenBucket,
)
from inventory.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "CurrentUser",
    "require_jwt",
    "AdmissionGate",
    "RateLimitMiddleware",
    "TokenBucket",
    "RequestIdMiddleware",
    "get_request_id",
]
