"""Pipeline entry points for reportocr.

Currently exposed:

- :class:`DocumentProcessor`: rate limit, validate, OCR, assemble for one
  document (``document.py``).
- :class:`BatchCoordinator`: bounded, order-preserving fan-out of documents
  with per-item results (``batch.py``).
"""

from __future__ import annotations

from .batch import BatchCoordinator, BatchItem
from .document import Document, DocumentProcessor

__all__ = ["BatchCoordinator", "BatchItem", "Document", "DocumentProcessor"]
