"""Detect genuinely new bulletins per station and record metric changes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from pydantic import TypeAdapter

from ..log_setup import get_logger
from ..reports.models import ReportKind, ReportScore
from ..reports.timegroup import resolve_issue_time
from ..stations.models import StationDerived
from .models import Direction, HistoryEvent, ReportSnapshot, SnapshotEntry, StationLastTimes
from .store import (
    PREVIOUS_VISIBILITY_KEY_PREFIX,
    STATION_EVENTS_KEY,
    STATION_SNAPSHOT_KEY,
    KeyValueStore,
    load_model,
    save_model,
)

DEFAULT_MAX_EVENTS_PER_STATION = 30
DEFAULT_MAX_STATIONS = 250
DEFAULT_KEEP_STATIONS = 200
_NEVER = datetime.min.replace(tzinfo=UTC)

HistorySort = Literal["det", "chg", "icao"]
HISTORY_SORTS: tuple[str, ...] = ("det", "chg", "icao")

_SNAPSHOTS_ADAPTER: TypeAdapter[dict[str, SnapshotEntry]] = TypeAdapter(dict[str, SnapshotEntry])
_EVENTS_ADAPTER: TypeAdapter[dict[str, list[HistoryEvent]]] = TypeAdapter(
    dict[str, list[HistoryEvent]]
)


@dataclass(frozen=True)
class _NumericMetric:
    attribute: str
    suffix: str
    higher_is_worse: bool
    label: dict[str, str]

    def metric_name(self, kind: ReportKind) -> str:
        return self.label[kind]

    def direction(self, previous: int, current: int) -> Direction:
        worse = current > previous if self.higher_is_worse else current < previous
        return "worsened" if worse else "improved"


_NUMERIC_METRICS: tuple[_NumericMetric, ...] = (
    _NumericMetric("visibility_m", "m", False, {"METAR": "METAR VIS", "TAF": "TAF worst VIS"}),
    _NumericMetric("rvr_min_m", "m", False, {"METAR": "METAR RVR(min)", "TAF": "TAF RVR(min)"}),
    _NumericMetric("max_gust_kt", "kt", True, {"METAR": "METAR GUST(max)", "TAF": "TAF GUST(max)"}),
)


def report_snapshot(
    score: ReportScore,
    kind: ReportKind,
    *,
    now: datetime | None = None,
) -> ReportSnapshot:
    """Scalar values tracked for one report; TAF visibility is its worst group.

    Without an issue group the text is treated as absent, so the weather
    signature is unknown rather than empty.
    """
    fields = score.fields
    usable = fields.issue_group is not None
    visibility = fields.visibility_m if kind == "METAR" else fields.worst_visibility_m
    return ReportSnapshot(
        issue_group=fields.issue_group,
        issued_at=resolve_issue_time(fields.issue_group, now),
        visibility_m=visibility,
        rvr_min_m=fields.rvr_min_m,
        max_gust_kt=fields.max_gust_kt,
        hazard_signature=fields.hazards.signature if usable else None,
    )


def diff_report(
    kind: ReportKind,
    previous: ReportSnapshot,
    current: ReportSnapshot,
    *,
    timestamp: datetime,
) -> list[HistoryEvent]:
    """Compare one report type against its stored snapshot.

    Nothing is emitted unless the issue group changed. A first sighting
    yields ``initial`` notes; later bulletins yield directional events for
    numeric metrics and a note for weather signature changes. A null on
    either side never produces a comparison.
    """
    if current.issue_group is None:
        return []

    events: list[HistoryEvent] = []
    wx_metric = f"{kind} Wx"

    if previous.issue_group is None:
        for metric in _NUMERIC_METRICS:
            value = getattr(current, metric.attribute)
            if value is not None:
                events.append(
                    HistoryEvent(
                        timestamp=timestamp,
                        metric=metric.metric_name(kind),
                        source=kind,
                        note=f"initial: {value} {metric.suffix}",
                    )
                )
        if current.hazard_signature:
            events.append(
                HistoryEvent(
                    timestamp=timestamp,
                    metric=wx_metric,
                    source=kind,
                    note=f"initial: {current.hazard_signature}",
                )
            )
        return events

    if previous.issue_group == current.issue_group:
        return []

    for metric in _NUMERIC_METRICS:
        before = getattr(previous, metric.attribute)
        after = getattr(current, metric.attribute)
        if before is None or after is None or before == after:
            continue
        events.append(
            HistoryEvent(
                timestamp=timestamp,
                metric=metric.metric_name(kind),
                source=kind,
                direction=metric.direction(before, after),
                from_value=f"{before} {metric.suffix}",
                to_value=f"{after} {metric.suffix}",
            )
        )

    before_wx, after_wx = previous.hazard_signature, current.hazard_signature
    if before_wx is not None and after_wx is not None and before_wx != after_wx:
        events.append(
            HistoryEvent(
                timestamp=timestamp,
                metric=wx_metric,
                source=kind,
                note=f"{before_wx or '-'} -> {after_wx or '-'}",
            )
        )
    return events


def _merge_snapshot(previous: ReportSnapshot, current: ReportSnapshot) -> ReportSnapshot:
    # Values always follow the latest text; the issue group sticks until a new one appears.
    if current.issue_group is not None:
        return current
    return current.model_copy(
        update={"issue_group": previous.issue_group, "issued_at": previous.issued_at}
    )


class HistoryDiffer:
    """Per-station snapshot memory and capped change log backed by a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        max_events_per_station: int = DEFAULT_MAX_EVENTS_PER_STATION,
        max_stations: int = DEFAULT_MAX_STATIONS,
        keep_stations: int = DEFAULT_KEEP_STATIONS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.max_events_per_station = max_events_per_station
        self.max_stations = max_stations
        self.keep_stations = keep_stations
        self.logger = logger or get_logger("history")
        self._snapshots: dict[str, SnapshotEntry] = load_model(
            store, STATION_SNAPSHOT_KEY, _SNAPSHOTS_ADAPTER, {}, logger=self.logger
        )
        self._events: dict[str, list[HistoryEvent]] = load_model(
            store, STATION_EVENTS_KEY, _EVENTS_ADAPTER, {}, logger=self.logger
        )

    @property
    def tracked_stations(self) -> list[str]:
        return sorted(self._snapshots.keys() | self._events.keys())

    def snapshot_for(self, icao: str) -> SnapshotEntry | None:
        return self._snapshots.get(icao.upper())

    def events_for(self, icao: str) -> list[HistoryEvent]:
        return list(self._events.get(icao.upper(), []))

    def last_times(self, icao: str) -> StationLastTimes:
        """Latest worsened, improved and any-change timestamps in the station log."""
        events = self._events.get(icao.upper(), [])
        worsened = [e.timestamp for e in events if e.direction == "worsened"]
        improved = [e.timestamp for e in events if e.direction == "improved"]
        return StationLastTimes(
            last_worsened=max(worsened, default=None),
            last_improved=max(improved, default=None),
            last_changed=max((e.timestamp for e in events), default=None),
        )

    def last_activity(self, icao: str) -> datetime:
        events = self._events.get(icao)
        if events:
            return events[-1].timestamp
        snapshot = self._snapshots.get(icao)
        if snapshot is not None and snapshot.updated_at is not None:
            return snapshot.updated_at
        return _NEVER

    def observe(
        self,
        stations: Sequence[StationDerived],
        *,
        timestamp: datetime,
    ) -> dict[str, list[HistoryEvent]]:
        """Diff every station against its snapshot, persist, and return new events by ICAO."""
        emitted: dict[str, list[HistoryEvent]] = {}
        for station in stations:
            icao = station.icao
            previous = self._snapshots.get(icao) or SnapshotEntry()
            current_metar = report_snapshot(station.metar, "METAR", now=timestamp)
            current_taf = report_snapshot(station.taf, "TAF", now=timestamp)

            station_events = [
                *diff_report("METAR", previous.metar, current_metar, timestamp=timestamp),
                *diff_report("TAF", previous.taf, current_taf, timestamp=timestamp),
            ]
            for event in station_events:
                self._push(icao, event)
            if station_events:
                emitted[icao] = station_events

            self._snapshots[icao] = SnapshotEntry(
                iata=station.station.iata or previous.iata,
                updated_at=timestamp,
                metar=_merge_snapshot(previous.metar, current_metar),
                taf=_merge_snapshot(previous.taf, current_taf),
            )

        self._evict_inactive()
        self.save()
        if emitted:
            self.logger.info(
                "Recorded %d history events across %d stations.",
                sum(len(events) for events in emitted.values()),
                len(emitted),
            )
        return emitted

    def save(self) -> None:
        save_model(self.store, STATION_EVENTS_KEY, _EVENTS_ADAPTER, self._events)
        save_model(self.store, STATION_SNAPSHOT_KEY, _SNAPSHOTS_ADAPTER, self._snapshots)

    def _push(self, icao: str, event: HistoryEvent) -> None:
        log = self._events.setdefault(icao, [])
        log.append(event)
        if len(log) > self.max_events_per_station:
            del log[: len(log) - self.max_events_per_station]

    def _evict_inactive(self) -> None:
        tracked = self.tracked_stations
        if len(tracked) <= self.max_stations:
            return
        by_activity = sorted(tracked, key=self.last_activity, reverse=True)
        dropped = by_activity[self.keep_stations :]
        for icao in dropped:
            self._events.pop(icao, None)
            self._snapshots.pop(icao, None)
            self.store.remove(f"{PREVIOUS_VISIBILITY_KEY_PREFIX}{icao}")
        self.logger.info(
            "Evicted %d least recently active stations from history.",
            len(dropped),
        )


def sort_by_history(
    stations: Iterable[StationDerived],
    differ: HistoryDiffer,
    mode: HistorySort = "det",
) -> list[StationDerived]:
    """Order stations by latest deterioration, latest change, or ICAO.

    Stations with no matching event sort last, alphabetically.
    """
    ordered = sorted(stations, key=lambda station: station.icao)
    if mode == "icao":
        return ordered
    if mode not in HISTORY_SORTS:
        raise ValueError(f"Unknown history sort {mode!r}.")

    def latest(station: StationDerived) -> datetime:
        times = differ.last_times(station.icao)
        value = times.last_worsened if mode == "det" else times.last_changed
        return value or _NEVER

    return sorted(ordered, key=latest, reverse=True)
