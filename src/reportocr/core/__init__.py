"""Core package initializer for reportocr.

Settings, logging, errors, the result container and the block-graph
contracts live here; nothing in ``core`` talks to the network.
"""

from __future__ import annotations

__all__ = ["__doc__"]
