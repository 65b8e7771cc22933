"""ExtractionResult: the structured output assembled from one block graph.

Fields serialize with camelCase aliases (``rawText``, ``keyValuePairs``) so
the HTTP payload matches what report clients already consume. Python code
uses the snake_case names.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Confidence = Annotated[float, Field(ge=0.0, le=100.0)]

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ExtractedLine(BaseModel):
    """One LINE block's text and OCR confidence."""

    model_config = _MODEL_CONFIG

    text: str
    confidence: Confidence = 0.0


class ExtractedTable(BaseModel):
    """A 2-D grid of cell texts; ``rows[r][c]`` is row r+1, column c+1."""

    model_config = _MODEL_CONFIG

    rows: list[list[str]] = Field(default_factory=list)

    @property
    def shape(self) -> tuple[int, int]:
        """Return ``(row_count, column_count)``; ``(0, 0)`` for an empty table."""
        if not self.rows:
            return (0, 0)
        return (len(self.rows), len(self.rows[0]))


class KeyValuePair(BaseModel):
    """A form field: key label, value text and the key's confidence."""

    model_config = _MODEL_CONFIG

    key: str
    value: str
    confidence: Confidence = 0.0


class ExtractionResult(BaseModel):
    """Everything assembled from a single OCR response."""

    model_config = _MODEL_CONFIG

    raw_text: str = ""
    lines: list[ExtractedLine] = Field(default_factory=list)
    tables: list[ExtractedTable] = Field(default_factory=list)
    key_value_pairs: list[KeyValuePair] = Field(default_factory=list)


__all__ = ["ExtractedLine", "ExtractedTable", "ExtractionResult", "KeyValuePair"]
