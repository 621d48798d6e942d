"""Combine METAR and TAF scores into one station assessment with triggers."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from ..feed.models import FeedSnapshot, StationReport
from ..reports.models import HAZARD_ORDER, ReportScore
from ..reports.scoring import MAX_SCORE, score_report
from .models import (
    ALERT_TIERS,
    AlertTier,
    BoardCounts,
    StationBoard,
    StationDerived,
    Trigger,
    TriggerSource,
)

ENGINE_ICE_MAX_VISIBILITY_M = 150
# Pinned above any natural score so engine-ice stations always lead.
ENGINE_ICE_PRIORITY = 1000
FORECAST_WEIGHT_PERCENT = 85

ALERT_TIER_FLOORS: tuple[tuple[int, AlertTier], ...] = (
    (70, "CRIT"),
    (45, "HIGH"),
    (20, "MED"),
)

# Trigger buckets, tightest first.
VISIBILITY_TRIGGER_BUCKETS_M: tuple[int, ...] = (150, 175, 250, 300, 500, 550, 800)
RVR_TRIGGER_BUCKETS_M: tuple[int, ...] = (75, 200, 300, 500)
CEILING_TRIGGER_FT = 500
NOTABLE_VISIBILITY_M = 175

ENGINE_ICE_LABEL = "ENG ICE OPS"


def alert_tier_for(score: int) -> AlertTier:
    for floor, tier in ALERT_TIER_FLOORS:
        if score >= floor:
            return tier
    return "OK"


def _min_or_none(values: Iterable[int | None]) -> int | None:
    present = [value for value in values if value is not None]
    return min(present) if present else None


def _source(current: bool, forecast: bool) -> TriggerSource | None:
    if current and forecast:
        return "BOTH"
    if current:
        return "CURRENT"
    if forecast:
        return "FORECAST"
    return None


def _at_or_below(value: int | None, limit: int) -> bool:
    return value is not None and value <= limit


def build_triggers(metar: ReportScore, taf: ReportScore, *, engine_ice_ops: bool) -> list[Trigger]:
    """Build the ordered trigger tags with METAR/TAF attribution.

    Visibility and RVR emit only the tightest bucket either report reaches.
    Ceiling and each weather code are independent single tags.
    """
    triggers: list[Trigger] = []

    def add(label: str, category: str, current: bool, forecast: bool) -> None:
        source = _source(current, forecast)
        if source is not None:
            triggers.append(Trigger(label=label, category=category, source=source))

    met_fields, taf_fields = metar.fields, taf.fields

    for bucket in VISIBILITY_TRIGGER_BUCKETS_M:
        current = _at_or_below(met_fields.visibility_m, bucket)
        forecast = _at_or_below(taf_fields.worst_visibility_m, bucket)
        if current or forecast:
            add(f"VIS≤{bucket}", "vis", current, forecast)
            break

    for bucket in RVR_TRIGGER_BUCKETS_M:
        current = any(value <= bucket for value in met_fields.rvr_values_m)
        forecast = any(value <= bucket for value in taf_fields.rvr_values_m)
        if current or forecast:
            add(f"RVR≤{bucket}", "rvr", current, forecast)
            break

    add(
        f"CIG<{CEILING_TRIGGER_FT}",
        "ceiling",
        met_fields.ceiling_ft is not None and met_fields.ceiling_ft < CEILING_TRIGGER_FT,
        taf_fields.ceiling_ft is not None and taf_fields.ceiling_ft < CEILING_TRIGGER_FT,
    )

    for flag, label in HAZARD_ORDER:
        add(
            label,
            "weather",
            getattr(met_fields.hazards, flag),
            getattr(taf_fields.hazards, flag),
        )

    if engine_ice_ops:
        triggers.insert(0, Trigger(label=ENGINE_ICE_LABEL, category="eng_ice", source="CURRENT"))
    return triggers


def derive_station(report: StationReport) -> StationDerived:
    """Score both reports of one station and combine them."""
    metar = score_report(report.metar_raw)
    taf = score_report(report.taf_raw)
    met_fields, taf_fields = metar.fields, taf.fields

    # Forecast data never sets this flag: it is an "operating now" condition.
    engine_ice_ops = (
        _at_or_below(met_fields.visibility_m, ENGINE_ICE_MAX_VISIBILITY_M)
        and met_fields.hazards.fzfg
    )

    severity = max(metar.score, taf.score * FORECAST_WEIGHT_PERCENT // 100)
    if engine_ice_ops:
        severity = MAX_SCORE

    return StationDerived(
        station=report,
        metar=metar,
        taf=taf,
        worst_visibility_m=_min_or_none(
            [met_fields.visibility_m, taf_fields.worst_visibility_m]
        ),
        min_rvr_m=_min_or_none([*met_fields.rvr_values_m, *taf_fields.rvr_values_m]),
        min_ceiling_ft=_min_or_none([met_fields.ceiling_ft, taf_fields.ceiling_ft]),
        engine_ice_ops=engine_ice_ops,
        severity_score=severity,
        alert_tier=alert_tier_for(severity),
        current_priority=ENGINE_ICE_PRIORITY if engine_ice_ops else metar.score,
        forecast_priority=taf.score,
        triggers=tuple(build_triggers(metar, taf, engine_ice_ops=engine_ice_ops)),
    )


def summarize_stations(stations: Iterable[StationDerived]) -> BoardCounts:
    """Count presence, alert tiers and notable conditions."""
    listed = list(stations)
    tiers = dict.fromkeys(ALERT_TIERS, 0)
    for station in listed:
        tiers[station.alert_tier] += 1
    metar_present = sum(1 for s in listed if s.station.has_metar)
    taf_present = sum(1 for s in listed if s.station.has_taf)
    return BoardCounts(
        total=len(listed),
        metar_present=metar_present,
        taf_present=taf_present,
        metar_missing=len(listed) - metar_present,
        taf_missing=len(listed) - taf_present,
        tiers=tiers,
        engine_ice_ops=sum(1 for s in listed if s.engine_ice_ops),
        vis175=sum(
            1 for s in listed if _at_or_below(s.worst_visibility_m, NOTABLE_VISIBILITY_M)
        ),
        thunderstorm=sum(1 for s in listed if s.thunderstorm),
        ceiling_below_500=sum(
            1
            for s in listed
            if s.min_ceiling_ft is not None and s.min_ceiling_ft < CEILING_TRIGGER_FT
        ),
    )


def derive_board(
    snapshot: FeedSnapshot,
    *,
    generated_at: datetime | None = None,
) -> StationBoard:
    """Derive every station in a feed snapshot into a fresh board."""
    stations = tuple(derive_station(report) for report in snapshot.stations)
    return StationBoard(
        generated_at=generated_at or snapshot.generated_at,
        stations=stations,
        counts=summarize_stations(stations),
    )
