"""Station ordering and board filters."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Literal, get_args

from .deriver import CEILING_TRIGGER_FT, RVR_TRIGGER_BUCKETS_M, VISIBILITY_TRIGGER_BUCKETS_M
from .models import StationDerived

SortMode = Literal["priority", "alpha"]
ConditionFilter = Literal[
    "all",
    "eng",
    "crit",
    "high",
    "med",
    "vis800",
    "vis550",
    "vis500",
    "vis300",
    "vis250",
    "vis175",
    "vis150",
    "rvr500",
    "rvr300",
    "rvr200",
    "rvr75",
    "fog",
    "snow",
    "rain",
    "ts",
    "cig500",
]
CONDITION_FILTERS: tuple[str, ...] = get_args(ConditionFilter)


def priority_key(station: StationDerived) -> tuple[bool, int, int, int, str]:
    """Sort key: engine ice, METAR priority, TAF priority, severity, ICAO."""
    return (
        not station.engine_ice_ops,
        -station.current_priority,
        -station.forecast_priority,
        -station.severity_score,
        station.icao,
    )


def sort_stations(
    stations: Iterable[StationDerived],
    mode: SortMode = "priority",
) -> list[StationDerived]:
    if mode == "alpha":
        return sorted(stations, key=lambda station: station.icao)
    return sorted(stations, key=priority_key)


def visibility_bucket(visibility_m: int | None) -> int | None:
    """Return the tightest visibility bucket the value falls into."""
    if visibility_m is None:
        return None
    for bucket in VISIBILITY_TRIGGER_BUCKETS_M:
        if visibility_m <= bucket:
            return bucket
    return None


def _worst_visibility_at_most(limit: int) -> Callable[[StationDerived], bool]:
    return lambda s: s.worst_visibility_m is not None and s.worst_visibility_m <= limit


def _rvr_at_most(limit: int) -> Callable[[StationDerived], bool]:
    return lambda s: s.min_rvr_m is not None and s.min_rvr_m <= limit


def _either_report(flag: str) -> Callable[[StationDerived], bool]:
    return lambda s: getattr(s.metar.fields.hazards, flag) or getattr(s.taf.fields.hazards, flag)


_CONDITION_PREDICATES: dict[str, Callable[[StationDerived], bool]] = {
    "all": lambda s: True,
    "eng": lambda s: s.engine_ice_ops,
    "crit": lambda s: s.alert_tier == "CRIT",
    "high": lambda s: s.alert_tier == "HIGH",
    "med": lambda s: s.alert_tier == "MED",
    **{f"vis{limit}": _worst_visibility_at_most(limit) for limit in VISIBILITY_TRIGGER_BUCKETS_M},
    **{f"rvr{limit}": _rvr_at_most(limit) for limit in RVR_TRIGGER_BUCKETS_M},
    "fog": lambda s: s.metar.fields.hazards.any_fog or s.taf.fields.hazards.any_fog,
    "snow": _either_report("sn"),
    "rain": _either_report("ra"),
    "ts": _either_report("ts"),
    "cig500": lambda s: s.min_ceiling_ft is not None and s.min_ceiling_ft < CEILING_TRIGGER_FT,
}


def filter_stations(
    stations: Iterable[StationDerived],
    *,
    query: str = "",
    alert: str = "all",
    condition: str = "all",
) -> list[StationDerived]:
    """Apply the free-text, alert-tier and condition filters.

    The query matches case-insensitively against ICAO, IATA and name.
    """
    needle = query.strip().upper()
    predicate = _CONDITION_PREDICATES.get(condition)
    if predicate is None:
        raise ValueError(f"Unknown condition filter {condition!r}.")

    selected: list[StationDerived] = []
    for station in stations:
        if needle:
            report = station.station
            haystack = f"{report.icao} {report.iata or ''} {report.name or ''}".upper()
            if needle not in haystack:
                continue
        if alert != "all" and station.alert_tier != alert:
            continue
        if not predicate(station):
            continue
        selected.append(station)
    return selected
