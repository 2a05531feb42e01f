"""Domain layer for finsight application."""

from finsight.domain.analytics import InsightService, analyze, result_to_dict
from finsight.domain.snapshot import build_snapshot

__all__ = [
    "InsightService",
    "analyze",
    "result_to_dict",
    "build_snapshot",
]
