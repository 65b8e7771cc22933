"""
Table assembler: TABLE -> CELL -> WORD into a rows x columns grid.

Algorithm (per TABLE block, in response order)
----------------------------------------------
1. Resolve the TABLE's CHILD edges and keep only CELL blocks that carry both a
   row and a column index.
2. Size the grid as ``max(row_index) x max(column_index)``.
3. Write each cell's space-joined WORD text to ``grid[row - 1][col - 1]``.
   When two cells claim the same coordinates, the later one in relationship
   order overwrites the earlier (last-write-wins).
4. Positions no cell reported stay ``""``.

A TABLE without resolvable cells produces an empty (0 x 0) grid.
"""

from __future__ import annotations

from reportocr.core.contracts.block import Block, BlockGraph, BlockType, RelationshipType
from reportocr.core.contracts.extraction import ExtractedTable
from reportocr.core.graph import children_of, joined_text


def _table_cells(graph: BlockGraph, table: Block) -> list[Block]:
    return [
        child
        for child in children_of(graph, table, RelationshipType.CHILD)
        if child.block_type == BlockType.CELL
        and child.row_index is not None
        and child.column_index is not None
    ]


def assemble_table(graph: BlockGraph, table: Block) -> ExtractedTable:
    """Build the grid for a single TABLE block."""
    cells = _table_cells(graph, table)
    if not cells:
        return ExtractedTable(rows=[])

    n_rows = max(c.row_index or 0 for c in cells)
    n_cols = max(c.column_index or 0 for c in cells)
    grid: list[list[str]] = [[""] * n_cols for _ in range(n_rows)]

    for cell in cells:
        row = (cell.row_index or 1) - 1
        col = (cell.column_index or 1) - 1
        grid[row][col] = joined_text(graph, cell)

    return ExtractedTable(rows=grid)


def assemble_tables(graph: BlockGraph) -> list[ExtractedTable]:
    """Return one grid per TABLE block, in response order."""
    return [assemble_table(graph, t) for t in graph.of_type(BlockType.TABLE)]


__all__ = ["assemble_table", "assemble_tables"]
