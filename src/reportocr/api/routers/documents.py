"""
API routes for document extraction.

Endpoints
---------
- `POST /documents/extract`: one uploaded file -> ExtractionResult.
- `POST /documents/batch`:   several uploaded files -> per-file outcomes.

The caller id comes from the ``X-Caller-Id`` header, set by the
authenticating gateway in front of this service. It is only used to scope
rate limiting.

Handlers are plain ``def`` functions: the OCR call blocks, so FastAPI runs
them on its worker thread pool.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Header, Request, UploadFile

from reportocr.api.schemas import BatchItemPayload, BatchResponse
from reportocr.core.contracts.extraction import ExtractionResult
from reportocr.core.errors import FileValidationError
from reportocr.ocr.validation import sanitize_result, size_limit
from reportocr.pipelines import BatchCoordinator, Document, DocumentProcessor

router = APIRouter(prefix="/documents", tags=["Documents"])

CallerId = Annotated[str, Header(alias="X-Caller-Id", min_length=1)]


def _to_document(upload: UploadFile) -> Document:
    """Read at most one byte past the size cap of the claimed type.

    An oversized upload keeps that extra byte, so upload validation still
    rejects it without the whole file ever being held in memory.
    """
    mime_type = upload.content_type or "application/octet-stream"
    return Document(buffer=upload.file.read(size_limit(mime_type) + 1), mime_type=mime_type)


@router.post(
    "/extract",
    response_model=ExtractionResult,
    summary="Extract text, tables and form fields from one document",
)
def extract_document(
    request: Request,
    file: Annotated[UploadFile, File(description="JPEG, PNG, HEIC/HEIF or single-page PDF")],
    caller_id: CallerId,
) -> ExtractionResult:
    processor: DocumentProcessor = request.app.state.processor
    document = _to_document(file)
    limit = size_limit(document.mime_type)
    if len(document.buffer) > limit:
        raise FileValidationError(
            f"File size exceeds maximum limit of {limit // (1024 * 1024)}MB"
        )
    result = processor.extract_document(document, caller_id)
    return sanitize_result(result)


@router.post(
    "/batch",
    response_model=BatchResponse,
    summary="Extract several documents; failures are reported per document",
)
def extract_batch(
    request: Request,
    files: Annotated[list[UploadFile], File(description="Documents in display order")],
    caller_id: CallerId,
) -> BatchResponse:
    coordinator: BatchCoordinator = request.app.state.coordinator
    results = coordinator.process_batch([_to_document(f) for f in files], caller_id)
    return BatchResponse(results=[BatchItemPayload.from_result(r) for r in results])


__all__ = ["router"]
