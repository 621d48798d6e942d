"""Typed models for per-station hazard assessments."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..feed.models import StationReport
from ..reports.models import ReportScore

AlertTier = Literal["CRIT", "HIGH", "MED", "OK"]
TriggerCategory = Literal["vis", "rvr", "ceiling", "weather", "eng_ice"]
TriggerSource = Literal["CURRENT", "FORECAST", "BOTH"]

ALERT_TIERS: tuple[AlertTier, ...] = ("CRIT", "HIGH", "MED", "OK")

_SOURCE_BADGES: dict[str, str] = {"CURRENT": "M", "FORECAST": "T", "BOTH": "M+T"}


class Trigger(BaseModel):
    """One labeled reason behind a station's assessment."""

    model_config = ConfigDict(frozen=True)

    label: str
    category: TriggerCategory
    source: TriggerSource

    @property
    def badge(self) -> str:
        return _SOURCE_BADGES[self.source]


class StationDerived(BaseModel):
    """Full assessment for one station, rebuilt from scratch every cycle."""

    model_config = ConfigDict(frozen=True)

    station: StationReport
    metar: ReportScore
    taf: ReportScore
    worst_visibility_m: int | None = None
    min_rvr_m: int | None = None
    min_ceiling_ft: int | None = None
    engine_ice_ops: bool = False
    severity_score: int = Field(ge=0, le=100)
    alert_tier: AlertTier
    current_priority: int
    forecast_priority: int
    triggers: tuple[Trigger, ...] = ()

    @property
    def icao(self) -> str:
        return self.station.icao

    @property
    def thunderstorm(self) -> bool:
        return self.metar.fields.hazards.ts or self.taf.fields.hazards.ts


class BoardCounts(BaseModel):
    """Aggregate counts over one cycle's station list."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    metar_present: int = 0
    taf_present: int = 0
    metar_missing: int = 0
    taf_missing: int = 0
    tiers: dict[str, int] = Field(default_factory=lambda: dict.fromkeys(ALERT_TIERS, 0))
    engine_ice_ops: int = 0
    vis175: int = 0
    thunderstorm: int = 0
    ceiling_below_500: int = 0


class StationBoard(BaseModel):
    """Immutable derived state handed to the presentation layer each cycle."""

    model_config = ConfigDict(frozen=True)

    generated_at: datetime | None = None
    stations: tuple[StationDerived, ...] = ()
    counts: BoardCounts = Field(default_factory=BoardCounts)

    def get(self, icao: str) -> StationDerived | None:
        code = icao.upper()
        for station in self.stations:
            if station.icao == code:
                return station
        return None
