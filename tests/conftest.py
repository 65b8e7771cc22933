"""Shared fixtures: a realistic AnalyzeDocument payload, a fake OCR client and a fake clock."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import pytest

from reportocr.core.contracts.block import BlockGraph
from reportocr.core.errors import TransientServiceError


def _response() -> dict[str, Any]:
    return {
        "Blocks": [
            {"BlockType": "PAGE", "Id": "page1", "Confidence": 99.9},
            {
                "BlockType": "LINE",
                "Id": "line1",
                "Text": "This is a test medical report",
                "Confidence": 99.8,
                "Geometry": {"BoundingBox": {"Left": 0.1, "Top": 0.1}},
            },
            {
                "BlockType": "LINE",
                "Id": "line2",
                "Text": "Lab Results: Hemoglobin 14.5 g/dL",
                "Confidence": 98.7,
            },
            {
                "BlockType": "LINE",
                "Id": "line3",
                "Text": "Normal Range: 13.5-17.5 g/dL",
                "Confidence": 97.5,
            },
            {
                "BlockType": "TABLE",
                "Id": "table1",
                "Confidence": 95.0,
                "Relationships": [
                    {"Type": "CHILD", "Ids": ["cell1", "cell2", "cell3", "cell4"]},
                ],
            },
            {
                "BlockType": "CELL",
                "Id": "cell1",
                "RowIndex": 1,
                "ColumnIndex": 1,
                "Confidence": 94.0,
                "Relationships": [{"Type": "CHILD", "Ids": ["word1"]}],
            },
            {
                "BlockType": "CELL",
                "Id": "cell2",
                "RowIndex": 1,
                "ColumnIndex": 2,
                "Confidence": 93.5,
                "Relationships": [{"Type": "CHILD", "Ids": ["word2"]}],
            },
            {"BlockType": "WORD", "Id": "word1", "Text": "Test", "Confidence": 92.0},
            {"BlockType": "WORD", "Id": "word2", "Text": "Value", "Confidence": 91.5},
            {
                "BlockType": "KEY_VALUE_SET",
                "Id": "kv1",
                "EntityTypes": ["KEY"],
                "Confidence": 90.0,
                "Relationships": [
                    {"Type": "VALUE", "Ids": ["kv2"]},
                    {"Type": "CHILD", "Ids": ["word3"]},
                ],
            },
            {
                "BlockType": "KEY_VALUE_SET",
                "Id": "kv2",
                "EntityTypes": ["VALUE"],
                "Confidence": 89.0,
                "Relationships": [{"Type": "CHILD", "Ids": ["word4"]}],
            },
            {"BlockType": "WORD", "Id": "word3", "Text": "Patient", "Confidence": 88.0},
            {"BlockType": "WORD", "Id": "word4", "Text": "John Doe", "Confidence": 87.5},
        ]
    }


@pytest.fixture  # type: ignore[misc]
def textract_response() -> dict[str, Any]:
    """AnalyzeDocument body with lines, a 1x2 table (two dangling cells) and one form field."""
    return _response()


@pytest.fixture  # type: ignore[misc]
def sample_graph(textract_response: dict[str, Any]) -> BlockGraph:
    return BlockGraph.from_textract(textract_response)


class FakeOcr:
    """In-memory OCR client recording its calls.

    ``behaviour`` maps a document buffer to a callable run before answering;
    it can sleep, wait on an event or raise.
    """

    def __init__(self, graph: BlockGraph) -> None:
        self.graph = graph
        self.calls: list[tuple[bytes, str]] = []
        self.behaviour: dict[bytes, Callable[[], None]] = {}
        self._lock = threading.Lock()

    def detect_document(self, buffer: bytes, mime_type: str) -> BlockGraph:
        with self._lock:
            self.calls.append((buffer, mime_type))
        hook = self.behaviour.get(buffer)
        if hook is not None:
            hook()
        return self.graph


@pytest.fixture  # type: ignore[misc]
def fake_ocr(sample_graph: BlockGraph) -> FakeOcr:
    return FakeOcr(sample_graph)


@pytest.fixture  # type: ignore[misc]
def failing() -> Callable[[], None]:
    """Hook raising the error a throttled OCR endpoint would produce."""

    def _raise() -> None:
        raise TransientServiceError("Textract API error: Rate exceeded", error_code="Throttling")

    return _raise


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture  # type: ignore[misc]
def clock() -> FakeClock:
    return FakeClock()
