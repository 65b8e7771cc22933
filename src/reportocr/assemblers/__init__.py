"""Assemblers: pure functions deriving structured artifacts from a block graph.

The text, table and key-value assemblers are independent of each other and
never suspend or touch shared state; :func:`assemble` runs all three.
"""

from __future__ import annotations

from reportocr.core.contracts.block import BlockGraph
from reportocr.core.contracts.extraction import ExtractionResult

from .key_values import assemble_key_values
from .tables import assemble_table, assemble_tables
from .text import assemble_lines, assemble_text


def assemble(graph: BlockGraph) -> ExtractionResult:
    """Assemble raw text, lines, tables and key-value pairs from ``graph``."""
    raw_text, lines = assemble_text(graph.blocks)
    return ExtractionResult(
        raw_text=raw_text,
        lines=lines,
        tables=assemble_tables(graph),
        key_value_pairs=assemble_key_values(graph),
    )


__all__ = [
    "assemble",
    "assemble_key_values",
    "assemble_lines",
    "assemble_table",
    "assemble_tables",
    "assemble_text",
]
