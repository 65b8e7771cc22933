from __future__ import annotations

from .client import DEFAULT_FEATURE_TYPES, OcrClient, TextractOcrClient
from .validation import ALLOWED_MIME_TYPES, sanitize_result, validate_document

__all__ = [
    "ALLOWED_MIME_TYPES",
    "DEFAULT_FEATURE_TYPES",
    "OcrClient",
    "TextractOcrClient",
    "sanitize_result",
    "validate_document",
]
