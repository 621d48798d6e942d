"""Per-station derivation, trigger aggregation and prioritization."""

from .deriver import build_triggers, derive_board, derive_station, summarize_stations
from .models import AlertTier, BoardCounts, StationBoard, StationDerived, Trigger
from .ranking import filter_stations, sort_stations

__all__ = [
    "AlertTier",
    "BoardCounts",
    "StationBoard",
    "StationDerived",
    "Trigger",
    "build_triggers",
    "derive_board",
    "derive_station",
    "filter_stations",
    "sort_stations",
    "summarize_stations",
]
