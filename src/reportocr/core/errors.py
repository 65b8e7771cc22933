"""Error kinds raised by the extraction pipeline.

Every error carries a stable ``kind`` string so that outer layers (HTTP API,
CLI) can map it to a distinct user-facing message without string matching:

- ``validation``   : the request itself is unacceptable (batch too large,
                     unsupported or suspicious upload). Raised before any work.
- ``rate_limited`` : the caller exceeded its per-minute document budget. The
                     OCR call is never attempted.
- ``transient``    : the OCR service failed or timed out for one document.
                     Retrying later may succeed.

Missing or dangling relationships inside a block graph are *not* errors; the
assemblers degrade to empty strings and lists instead.
"""

from __future__ import annotations

from typing import ClassVar


class ReportOcrError(Exception):
    """Base class for all pipeline errors."""

    kind: ClassVar[str] = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return a JSON-safe ``{"kind", "detail"}`` payload."""
        return {"kind": self.kind, "detail": self.message}


class ValidationError(ReportOcrError):
    """The request was rejected before any side effect took place."""

    kind: ClassVar[str] = "validation"


class BatchSizeError(ValidationError):
    """A batch holds more documents than the configured maximum."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Batch size {size} exceeds maximum limit of {limit} documents")


class FileValidationError(ValidationError):
    """An uploaded document failed type, size or content checks."""


class RateLimitedError(ReportOcrError):
    """The caller has used up its request budget for the current window."""

    kind: ClassVar[str] = "rate_limited"

    def __init__(self, caller_hash: str) -> None:
        self.caller_hash = caller_hash
        super().__init__("Too many requests. Please try again later.")


class TransientServiceError(ReportOcrError):
    """The external OCR call failed for a single document."""

    kind: ClassVar[str] = "transient"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.error_code = error_code
        self.request_id = request_id
        super().__init__(message)


__all__ = [
    "ReportOcrError",
    "ValidationError",
    "BatchSizeError",
    "FileValidationError",
    "RateLimitedError",
    "TransientServiceError",
]
