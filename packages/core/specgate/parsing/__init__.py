"""Tool output parsing helpers."""

from specgate.parsing.repair import repair_stream

__all__ = ["repair_stream"]
