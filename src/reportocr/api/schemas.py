"""
HTTP payload schemas for the extraction API.

Single-document responses are the :class:`ExtractionResult` itself. Batch
responses wrap each document in a :class:`BatchItemPayload` so that one
failed document shows up as ``{"ok": false, "error": {...}}`` at its own
index instead of failing the whole request.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from reportocr.core.contracts.extraction import ExtractionResult
from reportocr.core.errors import ReportOcrError
from reportocr.core.result import Result
from reportocr.ocr.validation import sanitize_result


class ErrorPayload(BaseModel):
    """Machine-readable error kind plus a human-readable detail."""

    kind: str
    detail: str


class BatchItemPayload(BaseModel):
    """Outcome for one document of a batch."""

    ok: bool
    result: ExtractionResult | None = None
    error: ErrorPayload | None = None

    @classmethod
    def from_result(cls, item: Result[ExtractionResult, ReportOcrError]) -> BatchItemPayload:
        if item.is_ok():
            return cls(ok=True, result=sanitize_result(item.unwrap()))
        return cls(ok=False, error=ErrorPayload(**item.unwrap_err().to_dict()))


class BatchResponse(BaseModel):
    """Per-document outcomes in upload order."""

    results: list[BatchItemPayload] = Field(default_factory=list)


class HealthPayload(BaseModel):
    status: str = "ok"
    environment: str
    version: str


__all__ = ["BatchItemPayload", "BatchResponse", "ErrorPayload", "HealthPayload"]
