"""One polling cycle: feed payload in, derived board and history updates out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .config import Settings
from .feed.models import FeedSnapshot
from .feed.parser import parse_feed
from .history.differ import HistoryDiffer
from .history.models import FeedHealth, HistoryEvent, SummarySample, UpdateIntervals
from .history.store import KeyValueStore
from .history.summary import SummaryHistory, feed_health
from .history.trend import Trend, display_visibility_m, visibility_trend
from .log_setup import get_logger
from .stations.deriver import derive_board
from .stations.models import StationBoard


@dataclass(slots=True)
class CycleResult:
    """Everything one cycle produced for the presentation layer."""

    fetched_at: datetime
    snapshot: FeedSnapshot
    board: StationBoard
    sample: SummarySample
    health: FeedHealth
    intervals: UpdateIntervals | None
    events: dict[str, list[HistoryEvent]] = field(default_factory=dict)
    trends: dict[str, Trend] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        return self.sample.is_new


class MonitorCycle:
    """Runs extraction, derivation and history bookkeeping against one store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.logger = logger or get_logger("pipeline")
        self.summary = SummaryHistory(
            store,
            max_samples=settings.summary_max_samples,
            logger=self.logger,
        )
        self.differ = HistoryDiffer(
            store,
            max_events_per_station=settings.events_max_per_station,
            max_stations=settings.history_max_stations,
            keep_stations=settings.history_keep_stations,
            logger=self.logger,
        )

    def run(self, payload: Any, *, now: datetime | None = None) -> CycleResult:
        """Process one raw feed document.

        History diffing only runs when the feed ``generatedAt`` moved on, so
        repeated polls of the same document never record events.
        """
        fetched_at = now or datetime.now(UTC)
        snapshot = parse_feed(payload, now=fetched_at, logger=self.logger)
        board = derive_board(snapshot)

        sample = self.summary.record(
            board.counts,
            fetched_at=fetched_at,
            generated_at=snapshot.generated_at,
        )
        events: dict[str, list[HistoryEvent]] = {}
        if sample.is_new and snapshot.generated_at is not None:
            events = self.differ.observe(board.stations, timestamp=snapshot.generated_at)

        trends = {
            station.icao: visibility_trend(self.store, station.icao, display_visibility_m(station))
            for station in board.stations
        }
        health = feed_health(
            snapshot.generated_at,
            now=fetched_at,
            expected_update_minutes=self.settings.expected_update_minutes,
        )
        return CycleResult(
            fetched_at=fetched_at,
            snapshot=snapshot,
            board=board,
            sample=sample,
            health=health,
            intervals=self.summary.update_intervals(),
            events=events,
            trends=trends,
        )
