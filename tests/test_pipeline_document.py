"""
Tests for the single-document pipeline.

The OCR boundary is the ``fake_ocr`` fixture: it records every call, so the
tests can assert that rejected documents never reach the OCR service.
"""

from __future__ import annotations

import io
import threading
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from PIL import Image

from reportocr.core.errors import FileValidationError, RateLimitedError, TransientServiceError
from reportocr.core.rate_limiter import RateLimiter
from reportocr.core.settings import Settings, hash_identifier
from reportocr.pipelines import Document, DocumentProcessor


@pytest.fixture  # type: ignore[misc]
def processor(fake_ocr: Any, clock: Any) -> Iterator[DocumentProcessor]:
    proc = DocumentProcessor(
        fake_ocr,
        RateLimiter(60.0, 3, clock=clock),
        timeout_seconds=2.0,
        validate_uploads=False,
    )
    yield proc
    proc.close()


def test_extract_assembles_result(processor: DocumentProcessor, fake_ocr: Any) -> None:
    result = processor.extract(b"scan-1", "image/png", "user-1")

    assert fake_ocr.calls == [(b"scan-1", "image/png")]
    assert result.raw_text.startswith("This is a test medical report")
    assert result.tables[0].rows == [["Test", "Value"]]
    assert result.key_value_pairs[0].value == "John Doe"


def test_extract_document_wrapper(processor: DocumentProcessor) -> None:
    result = processor.extract_document(Document(b"scan", "application/pdf"), "user-1")
    assert len(result.lines) == 3


def test_rate_limited_document_never_reaches_ocr(
    processor: DocumentProcessor, fake_ocr: Any
) -> None:
    for i in range(3):
        processor.extract(f"scan-{i}".encode(), "image/png", "user-1")

    with pytest.raises(RateLimitedError) as info:
        processor.extract(b"scan-3", "image/png", "user-1")

    assert len(fake_ocr.calls) == 3
    assert info.value.caller_hash == hash_identifier("user-1")
    assert info.value.message == "Too many requests. Please try again later."


def test_rate_limit_recovers_after_window(
    processor: DocumentProcessor, fake_ocr: Any, clock: Any
) -> None:
    for i in range(3):
        processor.extract(f"scan-{i}".encode(), "image/png", "user-1")
    clock.advance(61)

    processor.extract(b"later", "image/png", "user-1")
    assert len(fake_ocr.calls) == 4


def test_ocr_failure_propagates(
    processor: DocumentProcessor, fake_ocr: Any, failing: Callable[[], None]
) -> None:
    fake_ocr.behaviour[b"bad"] = failing
    with pytest.raises(TransientServiceError) as info:
        processor.extract(b"bad", "image/png", "user-1")
    assert info.value.error_code == "Throttling"


def test_foreign_ocr_exception_becomes_transient(
    processor: DocumentProcessor, fake_ocr: Any
) -> None:
    def broken_socket() -> None:
        raise OSError("network unreachable")

    fake_ocr.behaviour[b"scan"] = broken_socket
    with pytest.raises(TransientServiceError, match="OSError") as info:
        processor.extract(b"scan", "image/png", "user-1")
    assert isinstance(info.value.__cause__, OSError)


def test_timeout_counts_from_call_start(fake_ocr: Any, clock: Any) -> None:
    first_running = threading.Event()
    release = threading.Event()

    def hold() -> None:
        first_running.set()
        release.wait(5)

    fake_ocr.behaviour[b"first"] = hold
    proc = DocumentProcessor(
        fake_ocr,
        RateLimiter(60.0, 10, clock=clock),
        timeout_seconds=1.0,
        validate_uploads=False,
        max_inflight=1,
    )
    outcome: list[object] = []
    first_errors: list[TransientServiceError] = []

    def run_first() -> None:
        try:
            proc.extract(b"first", "image/png", "user-1")
        except TransientServiceError as exc:
            first_errors.append(exc)

    def run_second() -> None:
        outcome.append(proc.extract(b"second", "image/png", "user-1"))

    try:
        first = threading.Thread(target=run_first)
        first.start()
        assert first_running.wait(5)
        second = threading.Thread(target=run_second)
        second.start()

        # The second call sits in the queue for longer than its timeout.
        second.join(1.5)
        assert second.is_alive()
        release.set()
        second.join(5)
        first.join(5)
    finally:
        release.set()
        proc.close()

    # Only the call that actually ran past its timeout is reported as timed out.
    assert len(first_errors) == 1
    assert len(outcome) == 1
    assert [call[0] for call in fake_ocr.calls] == [b"first", b"second"]


def test_ocr_timeout_is_transient(fake_ocr: Any, clock: Any) -> None:
    release = threading.Event()
    fake_ocr.behaviour[b"stuck"] = lambda: release.wait(5)
    proc = DocumentProcessor(
        fake_ocr,
        RateLimiter(60.0, 10, clock=clock),
        timeout_seconds=0.05,
        validate_uploads=False,
    )
    try:
        with pytest.raises(TransientServiceError, match="timed out"):
            proc.extract(b"stuck", "image/png", "user-1")
    finally:
        release.set()
        proc.close()


def test_validation_runs_before_ocr(fake_ocr: Any, clock: Any) -> None:
    with DocumentProcessor(fake_ocr, RateLimiter(60.0, 10, clock=clock)) as proc:
        with pytest.raises(FileValidationError):
            proc.extract(b"GIF89a....", "image/gif", "user-1")

        buf = io.BytesIO()
        Image.new("RGB", (16, 16), "white").save(buf, format="PNG")
        proc.extract(buf.getvalue(), "image/png", "user-1")

    assert len(fake_ocr.calls) == 1


def test_from_settings_uses_configured_limits(fake_ocr: Any) -> None:
    s = Settings(TEXTRACT_DOCUMENT_REQUESTS_PER_MINUTE=1, TEXTRACT_TIMEOUT_SECONDS=4)
    with DocumentProcessor.from_settings(s, ocr=fake_ocr) as proc:
        assert proc.timeout_seconds == 4
        assert isinstance(proc.rate_limiter, RateLimiter)
        assert proc.rate_limiter.max_requests == 1
        assert proc.ocr is fake_ocr
