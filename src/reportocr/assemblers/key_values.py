"""Key-value assembler: pair KEY entities with their VALUE entities.

For every KEY_VALUE_SET block in the KEY role (response order):

1. its own CHILD WORD text is the key,
2. the first id of its VALUE edge is the paired VALUE block,
3. that block's CHILD WORD text is the value,
4. the KEY block's confidence is kept on the pair.

Keys whose VALUE edge is missing or dangling produce no pair; forms often
leave fields blank and that is not an error.
"""

from __future__ import annotations

from reportocr.core.contracts.block import BlockGraph, RelationshipType
from reportocr.core.contracts.extraction import KeyValuePair
from reportocr.core.graph import first_related, joined_text


def assemble_key_values(graph: BlockGraph) -> list[KeyValuePair]:
    """Return the resolvable key-value pairs of ``graph``."""
    pairs: list[KeyValuePair] = []
    for block in graph.blocks:
        if not block.is_key:
            continue
        value_block = first_related(graph, block, RelationshipType.VALUE)
        if value_block is None:
            continue
        pairs.append(
            KeyValuePair(
                key=joined_text(graph, block),
                value=joined_text(graph, value_block),
                confidence=block.confidence,
            )
        )
    return pairs


__all__ = ["assemble_key_values"]
