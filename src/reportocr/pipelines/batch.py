"""
Batch coordinator: many documents, one caller, input order preserved.

Contract
--------
``process_batch(documents, caller_id)`` returns one :class:`Result` per input
document, at the same index as the input:

- ``Ok(ExtractionResult)`` when the document went through the pipeline;
- ``Err(ReportOcrError)`` when it was rate limited, failed upload
  validation, or the OCR call raised or timed out.

One failing document never stops the others. Whatever the OCR client raises
reaches the batch as :class:`TransientServiceError`; any other exception is a
bug in this package and propagates out of the batch.

An oversized batch is rejected with :class:`BatchSizeError` before any
rate-limit check or OCR call happens.

Documents are independent, so they are dispatched on a thread pool of
``concurrency`` workers. Futures are collected in submission order, which
keeps the output aligned with the input whatever order the calls finish in.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from reportocr.core.contracts.extraction import ExtractionResult
from reportocr.core.errors import BatchSizeError, ReportOcrError
from reportocr.core.result import Result, err, ok, partition
from reportocr.core.settings import Settings, get_logger, load_settings

from .document import Document, DocumentProcessor

logger = get_logger(__name__)

BatchItem = Result[ExtractionResult, ReportOcrError]


class BatchCoordinator:
    """Validate batch size and fan documents out to a :class:`DocumentProcessor`."""

    def __init__(
        self,
        processor: DocumentProcessor,
        *,
        max_batch_size: int = 10,
        concurrency: int = 4,
    ) -> None:
        if max_batch_size <= 0:
            raise ValueError("max_batch_size must be positive")
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self.processor = processor
        self.max_batch_size = max_batch_size
        self.concurrency = concurrency

    @classmethod
    def from_settings(
        cls,
        processor: DocumentProcessor,
        settings: Settings | None = None,
    ) -> BatchCoordinator:
        s = settings or load_settings()
        return cls(processor, max_batch_size=s.max_batch_size, concurrency=s.batch_concurrency)

    def process_batch(self, documents: Sequence[Document], caller_id: str) -> list[BatchItem]:
        """Process ``documents`` for ``caller_id`` and return per-item results.

        Raises
        ------
        BatchSizeError
            If ``len(documents)`` exceeds :attr:`max_batch_size`.
        """
        if len(documents) > self.max_batch_size:
            raise BatchSizeError(len(documents), self.max_batch_size)
        if not documents:
            return []

        workers = min(self.concurrency, len(documents))
        if workers == 1:
            results = [self._process_one(doc, caller_id) for doc in documents]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="batch") as pool:
                futures = [pool.submit(self._process_one, doc, caller_id) for doc in documents]
                results = [f.result() for f in futures]

        _, errors = partition(results)
        logger.info(
            "Batch processed | documents=%d failed=%d kinds=%s",
            len(results),
            len(errors),
            ",".join(sorted({e.kind for e in errors})) or "-",
        )
        return results

    def _process_one(self, document: Document, caller_id: str) -> BatchItem:
        try:
            return ok(self.processor.extract_document(document, caller_id))
        except ReportOcrError as exc:
            logger.warning(
                "Error processing document in batch | kind=%s type=%s size=%d",
                exc.kind,
                document.mime_type,
                len(document.buffer),
            )
            return err(exc)


__all__ = ["BatchCoordinator", "BatchItem"]
