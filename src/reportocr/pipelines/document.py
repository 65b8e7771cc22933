"""
Single-document extraction pipeline.

Flow
----
1. **Rate limit**: the caller's budget is checked first; a rejected request
   raises :class:`RateLimitedError` and the OCR service is never contacted.
2. **Upload validation**: type, size and content checks
   (:func:`reportocr.ocr.validation.validate_document`).
3. **OCR call**: the only blocking step. It runs on a small worker pool so the
   pipeline can stop waiting after ``timeout_seconds``. The clock starts when
   a worker picks the call up, not while it waits in the queue. A timeout, or
   anything the OCR client raises, surfaces as
   :class:`TransientServiceError`.
4. **Assembly**: text, tables and key-value pairs are derived from the block
   graph by pure functions.

Logging never includes document content or raw caller ids: only sizes, MIME
types, a content-hash prefix and the SHA-256 of the caller id.
"""

from __future__ import annotations

import hashlib
import threading
import time
from concurrent.futures import CancelledError, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from types import TracebackType

from reportocr.assemblers import assemble
from reportocr.core.contracts.block import BlockGraph
from reportocr.core.contracts.extraction import ExtractionResult
from reportocr.core.errors import RateLimitedError, ReportOcrError, TransientServiceError
from reportocr.core.rate_limiter import RateLimiter, RequestGate
from reportocr.core.settings import Settings, get_logger, hash_identifier, load_settings
from reportocr.ocr.client import OcrClient, TextractOcrClient
from reportocr.ocr.validation import validate_document

logger = get_logger(__name__)

_START_POLL_SECONDS = 0.05


@dataclass(frozen=True, slots=True)
class Document:
    """One uploaded document: raw bytes plus the MIME type the client claimed."""

    buffer: bytes
    mime_type: str


class DocumentProcessor:
    """
    Run the extraction pipeline for one document at a time.

    Parameters
    ----------
    ocr:
        The OCR boundary (``detect_document``).
    rate_limiter:
        Shared per-caller gate. One instance per process.
    timeout_seconds:
        Upper bound on one running OCR call. Queue time is not included.
    validate_uploads:
        Run :func:`validate_document` before the OCR call.
    max_inflight:
        Size of the worker pool that carries OCR calls. Extra calls wait for a
        free worker.
    """

    def __init__(
        self,
        ocr: OcrClient,
        rate_limiter: RequestGate,
        *,
        timeout_seconds: float = 30.0,
        validate_uploads: bool = True,
        max_inflight: int = 8,
    ) -> None:
        self.ocr = ocr
        self.rate_limiter = rate_limiter
        self.timeout_seconds = timeout_seconds
        self.validate_uploads = validate_uploads
        self._pool = ThreadPoolExecutor(max_workers=max_inflight, thread_name_prefix="ocr-call")

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        ocr: OcrClient | None = None,
        rate_limiter: RequestGate | None = None,
    ) -> DocumentProcessor:
        """Wire a processor from settings, building missing collaborators."""
        s = settings or load_settings()
        return cls(
            ocr=ocr or TextractOcrClient.from_settings(s),
            rate_limiter=rate_limiter or RateLimiter.per_minute(s.document_requests_per_minute),
            timeout_seconds=s.ocr_timeout_seconds,
            max_inflight=max(2 * s.batch_concurrency, 1),
        )

    # ------------------------------------------------------------------ API

    def extract(self, buffer: bytes, mime_type: str, caller_id: str) -> ExtractionResult:
        """Extract structured text from one document.

        Raises
        ------
        RateLimitedError
            The caller is over its per-minute budget.
        FileValidationError
            The upload failed validation.
        TransientServiceError
            The OCR call raised or ran longer than ``timeout_seconds``.
        """
        start = time.perf_counter()
        caller_hash = hash_identifier(caller_id)
        try:
            if not self.rate_limiter.try_request(caller_id):
                raise RateLimitedError(caller_hash)

            if self.validate_uploads:
                validate_document(buffer, mime_type)

            logger.debug(
                "Processing document | type=%s size=%.2fKB content_hash=%s",
                mime_type,
                len(buffer) / 1024,
                hashlib.sha256(buffer).hexdigest()[:10],
            )

            graph = self._detect(buffer, mime_type)
            result = assemble(graph)
        except ReportOcrError as exc:
            logger.error(
                "Error processing document | kind=%s type=%s user=%s error=%s",
                exc.kind,
                mime_type,
                caller_hash,
                exc.message,
            )
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Document processed in %.0fms | lines=%d tables=%d pairs=%d",
            elapsed_ms,
            len(result.lines),
            len(result.tables),
            len(result.key_value_pairs),
        )
        return result

    def extract_document(self, document: Document, caller_id: str) -> ExtractionResult:
        """Convenience wrapper around :meth:`extract` for a :class:`Document`."""
        return self.extract(document.buffer, document.mime_type, caller_id)

    # ------------------------------------------------------------ lifecycle

    def close(self) -> None:
        """Release the OCR worker pool without waiting for abandoned calls."""
        self._pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> DocumentProcessor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------- internal

    def _detect(self, buffer: bytes, mime_type: str) -> BlockGraph:
        started = threading.Event()

        def call() -> BlockGraph:
            started.set()
            return self.ocr.detect_document(buffer, mime_type)

        future = self._pool.submit(call)
        # Time spent queued behind other calls does not count against the timeout.
        while not started.wait(_START_POLL_SECONDS):
            if future.done():
                break

        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as exc:
            raise TransientServiceError(
                f"OCR call timed out after {self.timeout_seconds:g}s"
            ) from exc
        except CancelledError as exc:
            raise TransientServiceError("OCR call cancelled: processor closed") from exc
        except ReportOcrError:
            raise
        except Exception as exc:
            raise TransientServiceError(
                f"OCR call failed: {type(exc).__name__}: {exc}"
            ) from exc


__all__ = ["Document", "DocumentProcessor"]
