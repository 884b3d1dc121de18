"""Rate limiting data models."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check.

    A denial is a normal outcome meaning "try later", not an error.
    """
    allowed: bool
    limit: int
    remaining: int
    retry_after: float

    @property
    def retry_after_header(self) -> str:
        """Retry-After header value in whole seconds (at least 1)."""
        return str(max(1, math.ceil(self.retry_after)))

    @property
    def retry_after_text(self) -> str:
        """Human readable retry hint, e.g. "1 second" or "2.5 seconds"."""
        seconds = self.retry_after
        value = int(seconds) if float(seconds).is_integer() else seconds
        unit = "second" if value == 1 else "seconds"
        return f"{value} {unit}"
