"""Text assembler: LINE blocks in response order -> lines and raw text.

The OCR service emits lines in reading order, so no geometric re-sorting is
done here.
"""

from __future__ import annotations

from collections.abc import Iterable

from reportocr.core.contracts.block import Block, BlockType
from reportocr.core.contracts.extraction import ExtractedLine


def assemble_lines(blocks: Iterable[Block]) -> list[ExtractedLine]:
    """Return one :class:`ExtractedLine` per LINE block, in input order."""
    return [
        ExtractedLine(text=b.text or "", confidence=b.confidence)
        for b in blocks
        if b.block_type == BlockType.LINE
    ]


def assemble_text(blocks: Iterable[Block]) -> tuple[str, list[ExtractedLine]]:
    """Return ``(raw_text, lines)``; raw text is the line texts joined by newlines.

    A response without LINE blocks yields ``("", [])``.
    """
    lines = assemble_lines(blocks)
    return "\n".join(line.text for line in lines), lines


__all__ = ["assemble_lines", "assemble_text"]
