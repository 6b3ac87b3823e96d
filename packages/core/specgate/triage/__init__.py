"""Finding classification, ordering and aggregation."""

from specgate.triage.aggregator import summarize
from specgate.triage.classifier import classify, classify_all, dedupe_findings
from specgate.triage.sorter import sort_findings, sorted_items

__all__ = [
    "classify",
    "classify_all",
    "dedupe_findings",
    "sort_findings",
    "sorted_items",
    "summarize",
]
