"""reportocr: structured extraction from OCR block graphs of medical reports.

The package turns the block graph returned by the managed OCR service into
plain text, tables and key-value pairs, gated by per-caller rate limiting and
bounded batches.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
