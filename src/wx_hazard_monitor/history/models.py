"""Typed models for state carried across polling cycles."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..reports.models import ReportKind

Direction = Literal["worsened", "improved"]


class ReportSnapshot(BaseModel):
    """Last-seen scalar values for one report type of one station."""

    issue_group: str | None = None
    issued_at: datetime | None = None
    visibility_m: int | None = None
    rvr_min_m: int | None = None
    max_gust_kt: int | None = None
    hazard_signature: str | None = None


class SnapshotEntry(BaseModel):
    """Per-station memory used to detect genuinely new bulletins."""

    iata: str | None = None
    updated_at: datetime | None = None
    metar: ReportSnapshot = Field(default_factory=ReportSnapshot)
    taf: ReportSnapshot = Field(default_factory=ReportSnapshot)


class HistoryEvent(BaseModel):
    """One recorded change (or first sighting) of a station metric."""

    timestamp: datetime
    metric: str
    source: ReportKind
    direction: Direction | None = None
    from_value: str | None = None
    to_value: str | None = None
    note: str | None = None

    def describe(self) -> str:
        direction = f" ({self.direction})" if self.direction else ""
        if self.note:
            detail = self.note
        else:
            detail = f"{self.from_value or '-'} -> {self.to_value or '-'}"
        return f"{self.metric} [{self.source}]{direction}: {detail}"


class StationLastTimes(BaseModel):
    """Latest deterioration, improvement and change recorded for a station."""

    model_config = ConfigDict(frozen=True)

    last_worsened: datetime | None = None
    last_improved: datetime | None = None
    last_changed: datetime | None = None


class SummarySample(BaseModel):
    """Per-cycle aggregate sample kept for trend charts."""

    fetched_at: datetime
    generated_at: datetime | None = None
    is_new: bool = True
    delta_min: float | None = None
    stations: int = 0
    metar: int = 0
    taf: int = 0
    eng: int = 0
    crit: int = 0
    high: int = 0
    med: int = 0
    ok: int = 0
    vis175: int = 0
    ts: int = 0


class UpdateIntervals(BaseModel):
    """Average and most recent minutes between distinct feed updates."""

    average_min: float
    last_min: float
    samples: int


class FeedHealth(BaseModel):
    status: Literal["OK", "STALE", "UNKNOWN"]
    age_min: float | None = None
    limit_min: float
