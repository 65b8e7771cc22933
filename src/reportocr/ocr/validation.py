"""
Upload validation and output sanitising.

Documents come straight from end users' phones, so before any bytes are sent
to the OCR service they go through :func:`validate_document`:

1. the claimed MIME type must be one we accept,
2. the buffer must fit the per-type size limit,
3. the leading magic number must match the claimed type,
4. executable / archive signatures are rejected outright,
5. images with near-random byte distribution (entropy > 7.5 bits/byte) are
   rejected as likely encrypted or packed payloads,
6. the container structure must be sound: JPEG and PNG are decoded far
   enough by Pillow to verify them, HEIC/HEIF gets a minimum-size check, and
   PDFs must open with pdfplumber and hold exactly one page (the synchronous
   AnalyzeDocument API only accepts single-page documents).

Any failure raises :class:`FileValidationError`.

:func:`sanitize_result` strips markup and script-ish fragments from every
string of an :class:`ExtractionResult` before it is handed to a browser.
"""

from __future__ import annotations

import io
import math
import re
from collections import Counter
from typing import Any

import pdfplumber
from PIL import Image

from reportocr.core.contracts.extraction import ExtractionResult
from reportocr.core.errors import FileValidationError

_MB = 1024 * 1024

MAX_FILE_SIZES: dict[str, int] = {
    "image/jpeg": 10 * _MB,
    "image/png": 10 * _MB,
    "image/heic": 10 * _MB,
    "image/heif": 10 * _MB,
    "application/pdf": 5 * _MB,
}
ALLOWED_MIME_TYPES: frozenset[str] = frozenset(MAX_FILE_SIZES)

# Hex prefixes, upper case.
_EXECUTABLE_SIGNATURES = frozenset({"4D5A", "7F454C46", "504B0304", "CAFEBABE"})
_JPEG_SIGNATURES = ("FFD8FF",)
_PNG_SIGNATURES = ("89504E47",)
_HEIC_SIGNATURES = (
    "00000020667479706865696300",
    "0000001C667479706D696631",
    "00000018667479706D696631",
)
_PDF_SIGNATURES = ("25504446",)

_SIGNATURES_BY_TYPE: dict[str, tuple[str, ...]] = {
    "image/jpeg": _JPEG_SIGNATURES,
    "image/png": _PNG_SIGNATURES,
    "image/heic": _HEIC_SIGNATURES,
    "image/heif": _HEIC_SIGNATURES,
    "application/pdf": _PDF_SIGNATURES,
}

_PNG_IEND = bytes([0x49, 0x45, 0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82])
_MAX_ENTROPY = 7.5
_MIN_HEIC_SIZE = 512


def size_limit(mime_type: str) -> int:
    """Return the upload size cap for ``mime_type``; the largest cap for unknown types."""
    return MAX_FILE_SIZES.get(mime_type, max(MAX_FILE_SIZES.values()))


def _hex_prefix(buffer: bytes, n: int) -> str:
    return buffer[:n].hex().upper()


def shannon_entropy(buffer: bytes) -> float:
    """Return the Shannon entropy of ``buffer`` in bits per byte (0.0 to 8.0)."""
    if not buffer:
        return 0.0
    total = len(buffer)
    return -sum((c / total) * math.log2(c / total) for c in Counter(buffer).values())


def _check_image_structure(buffer: bytes, mime_type: str) -> None:
    if len(buffer) < 12:
        raise FileValidationError("Invalid image structure: file too small to be a valid image")

    if mime_type in ("image/heic", "image/heif"):
        if len(buffer) < _MIN_HEIC_SIZE:
            raise FileValidationError("Invalid image structure: invalid HEIC/HEIF structure")
        return

    if mime_type == "image/png" and not buffer.endswith(_PNG_IEND):
        raise FileValidationError("Invalid image structure: invalid PNG structure")
    if mime_type == "image/jpeg" and not buffer.endswith(b"\xff\xd9"):
        raise FileValidationError("Invalid image structure: invalid JPEG structure")

    try:
        with Image.open(io.BytesIO(buffer)) as img:
            img.verify()
    except Exception as exc:
        raise FileValidationError(f"Invalid image structure: {exc}") from exc


def _check_pdf_structure(buffer: bytes) -> None:
    try:
        with pdfplumber.open(io.BytesIO(buffer)) as pdf:
            page_count = len(pdf.pages)
    except Exception as exc:
        raise FileValidationError(f"Invalid PDF structure: {exc}") from exc
    if page_count != 1:
        raise FileValidationError(
            f"PDF has {page_count} pages; only single-page documents are supported"
        )


def validate_document(buffer: bytes, mime_type: str) -> None:
    """Validate an uploaded document, raising :class:`FileValidationError`."""
    if mime_type not in ALLOWED_MIME_TYPES:
        raise FileValidationError("Only JPEG, PNG, HEIC/HEIF images and PDF documents are allowed")

    limit = size_limit(mime_type)
    if len(buffer) > limit:
        raise FileValidationError(f"File size exceeds maximum limit of {limit // _MB}MB")

    signature = _hex_prefix(buffer, 16)
    if not any(signature.startswith(sig) for sig in _SIGNATURES_BY_TYPE[mime_type]):
        raise FileValidationError("File content does not match claimed type")

    if any(signature.startswith(sig) for sig in _EXECUTABLE_SIGNATURES):
        raise FileValidationError("File contains executable content")

    if mime_type == "application/pdf":
        _check_pdf_structure(buffer)
        return

    if shannon_entropy(buffer) > _MAX_ENTROPY:
        raise FileValidationError("File content appears to be encrypted or compressed")

    _check_image_structure(buffer, mime_type)


# --------------------------------------------------------------------------- #
# Output sanitising
# --------------------------------------------------------------------------- #

_STRIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[<>]"),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"on\w+=", re.IGNORECASE),
)


def sanitize_text(value: str) -> str:
    """Remove HTML brackets, script/data URLs and inline event handlers."""
    for pattern in _STRIP_PATTERNS:
        value = pattern.sub("", value)
    return value.strip()


def _sanitize(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, list):
        return [_sanitize(v) for v in value]
    if isinstance(value, dict):
        return {k: _sanitize(v) for k, v in value.items()}
    return value


def sanitize_result(result: ExtractionResult) -> ExtractionResult:
    """Return a copy of ``result`` with every string sanitised."""
    return ExtractionResult.model_validate(_sanitize(result.model_dump()))


__all__ = [
    "ALLOWED_MIME_TYPES",
    "MAX_FILE_SIZES",
    "sanitize_result",
    "sanitize_text",
    "shannon_entropy",
    "size_limit",
    "validate_document",
]
