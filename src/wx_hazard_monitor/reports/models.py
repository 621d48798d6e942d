"""Typed models for values extracted from one raw METAR or TAF."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ReportKind = Literal["METAR", "TAF"]

# Display order used for trigger tags and hazard signatures.
HAZARD_ORDER: tuple[tuple[str, str], ...] = (
    ("ts", "TS"),
    ("fzfg", "FZFG"),
    ("fg", "FG"),
    ("br", "BR"),
    ("sn", "SN"),
    ("ra", "RA"),
)


class HazardFlags(BaseModel):
    """Boolean hazard membership for one report."""

    model_config = ConfigDict(frozen=True)

    fzfg: bool = False
    fg: bool = False
    br: bool = False
    sn: bool = False
    ra: bool = False
    ts: bool = False

    def labels(self) -> list[str]:
        """Active hazard codes in display order."""
        return [label for field, label in HAZARD_ORDER if getattr(self, field)]

    @property
    def signature(self) -> str:
        return ",".join(self.labels())

    @property
    def any_fog(self) -> bool:
        return self.fg or self.fzfg or self.br


class ExtractedFields(BaseModel):
    """Quantities pulled out of one raw report; recomputed every cycle."""

    model_config = ConfigDict(frozen=True)

    visibility_m: int | None = None
    visibility_values_m: tuple[int, ...] = ()
    rvr_values_m: tuple[int, ...] = ()
    ceiling_ft: int | None = None
    max_gust_kt: int | None = None
    issue_group: str | None = None
    hazards: HazardFlags = Field(default_factory=HazardFlags)

    @property
    def rvr_min_m(self) -> int | None:
        return min(self.rvr_values_m) if self.rvr_values_m else None

    @property
    def worst_visibility_m(self) -> int | None:
        """Lowest of every visibility group (forecast change groups included)."""
        return min(self.visibility_values_m) if self.visibility_values_m else None


class ReportScore(BaseModel):
    """Extracted fields plus the additive severity score for one report."""

    model_config = ConfigDict(frozen=True)

    fields: ExtractedFields
    score: int = Field(ge=0, le=100)
