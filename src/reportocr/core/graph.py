"""
Relationship resolver over a :class:`BlockGraph`.

All helpers are stateless functions of ``(graph, block)``. They follow typed
edges and return resolved blocks in relationship order, silently skipping ids
that do not resolve. The OCR service can emit partial graphs for low
confidence regions, so a dangling id is treated as "nothing there" rather than
as an error.

Examples
--------
>>> graph = BlockGraph.from_blocks([
...     Block(id="c1", block_type="CELL", relationships=[{"type": "CHILD", "ids": ["w1", "gone"]}]),
...     Block(id="w1", block_type="WORD", text="Hemoglobin"),
... ])
>>> [b.id for b in children_of(graph, graph.index["c1"], RelationshipType.CHILD)]
['w1']
"""

from __future__ import annotations

from collections.abc import Collection

from reportocr.core.contracts.block import Block, BlockGraph, BlockType, RelationshipType


def children_of(graph: BlockGraph, block: Block, relation_type: str) -> list[Block]:
    """Return the resolved targets of every ``relation_type`` edge of ``block``.

    Parameters
    ----------
    graph:
        Graph the ids are resolved against.
    block:
        Source block.
    relation_type:
        Edge type to follow, usually ``CHILD`` or ``VALUE``.

    Returns
    -------
    list[Block]
        Targets in relationship order; unresolved ids are skipped, and a block
        without such relationships yields ``[]``.
    """
    out: list[Block] = []
    for rel in block.relationships:
        if rel.type != relation_type:
            continue
        for target_id in rel.ids:
            target = graph.get(target_id)
            if target is not None:
                out.append(target)
    return out


def first_related(graph: BlockGraph, block: Block, relation_type: str) -> Block | None:
    """Return the block referenced by the first id of the first matching edge.

    Only that single id is considered: further ids on the same edge are
    ignored, and an unresolved first id yields None.
    """
    for rel in block.relationships:
        if rel.type == relation_type and rel.ids:
            return graph.get(rel.ids[0])
    return None


def joined_text(
    graph: BlockGraph,
    block: Block,
    block_types: Collection[str] = (BlockType.WORD,),
) -> str:
    """Space-join the text of ``block``'s CHILD blocks of ``block_types``, trimmed."""
    words = [
        child.text or ""
        for child in children_of(graph, block, RelationshipType.CHILD)
        if child.block_type in block_types
    ]
    return " ".join(words).strip()


__all__ = ["children_of", "first_related", "joined_text"]
