"""Typed models for the normalized station feed."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StationReport(BaseModel):
    """One station record as delivered by the feed, codes upper-cased."""

    model_config = ConfigDict(frozen=True)

    icao: str = Field(min_length=4, max_length=4, description="4-letter location code")
    iata: str | None = Field(default=None, description="3-letter travel code if known")
    name: str | None = None
    metar_raw: str = ""
    taf_raw: str = ""
    metar_age_min: float | None = None
    taf_age_min: float | None = None

    @property
    def has_metar(self) -> bool:
        return bool(self.metar_raw)

    @property
    def has_taf(self) -> bool:
        return bool(self.taf_raw)


class FeedSnapshot(BaseModel):
    """One retrieved feed document after normalization."""

    generated_at: datetime | None = None
    stations: list[StationReport] = Field(default_factory=list)
    discarded: int = 0
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
