"""State carried across polling cycles: snapshots, change events, summaries."""

from .differ import HistoryDiffer, diff_report, report_snapshot, sort_by_history
from .models import (
    FeedHealth,
    HistoryEvent,
    ReportSnapshot,
    SnapshotEntry,
    StationLastTimes,
    SummarySample,
)
from .store import DirectoryStore, KeyValueStore, MemoryStore
from .summary import SummaryHistory, feed_health
from .trend import display_visibility_m, visibility_trend

__all__ = [
    "DirectoryStore",
    "FeedHealth",
    "HistoryDiffer",
    "HistoryEvent",
    "KeyValueStore",
    "MemoryStore",
    "ReportSnapshot",
    "SnapshotEntry",
    "StationLastTimes",
    "SummaryHistory",
    "SummarySample",
    "diff_report",
    "display_visibility_m",
    "feed_health",
    "report_snapshot",
    "sort_by_history",
    "visibility_trend",
]
