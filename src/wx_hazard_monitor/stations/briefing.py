"""Plain-text briefing helpers: briefing line, decoded reports, report ages."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from ..reports.extractor import (
    CAVOK_VISIBILITY_M,
    extract_all_visibility_m,
    find_change_groups,
    parse_ceiling_ft,
    parse_qnh_hpa,
    parse_temperature_dewpoint,
    parse_validity,
    parse_visibility_m,
    parse_wind,
)
from ..reports.hazards import classify_hazards
from .models import StationDerived

AgeClass = Literal["fresh", "warn", "stale"]

FRESH_MAX_AGE_MIN = 20
WARN_MAX_AGE_MIN = 60


def age_class(age_min: float | None) -> AgeClass:
    if age_min is None:
        return "stale"
    if age_min <= FRESH_MAX_AGE_MIN:
        return "fresh"
    if age_min <= WARN_MAX_AGE_MIN:
        return "warn"
    return "stale"


def format_age(age_min: float | None) -> str:
    if age_min is None:
        return "-"
    return f"{round(age_min)}m"


def engine_ice_iata_codes(stations: Iterable[StationDerived], limit: int = 10) -> list[str]:
    """IATA codes of engine-ice stations, capped with a trailing "+N" overflow marker."""
    codes = [
        station.station.iata.upper()
        for station in stations
        if station.engine_ice_ops and station.station.iata
    ]
    if len(codes) > limit:
        return [*codes[:limit], f"+{len(codes) - limit}"]
    return codes


def build_briefing_line(station: StationDerived) -> str:
    """One-line summary suitable for pasting into a crew briefing."""
    report = station.station
    parts = [
        f"{report.icao}/{report.iata or '-'}",
        f"ALERT {station.alert_tier} (sev {station.severity_score})",
    ]
    if station.engine_ice_ops:
        parts.append("ENG ICE OPS")
    if station.metar.fields.visibility_m is not None:
        parts.append(f"METAR VIS {station.metar.fields.visibility_m}m")
    if station.worst_visibility_m is not None:
        parts.append(f"WORST VIS {station.worst_visibility_m}m")
    if station.min_rvr_m is not None:
        parts.append(f"RVRmin {station.min_rvr_m}m")
    if station.min_ceiling_ft is not None:
        parts.append(f"CIG {station.min_ceiling_ft}ft")
    if station.triggers:
        tags = ",".join(f"{trigger.label}({trigger.badge})" for trigger in station.triggers)
        parts.append(f"TRG {tags}")
    return " | ".join(parts)


def _wind_line(raw: str) -> str | None:
    wind = parse_wind(raw)
    if wind is None:
        return None
    gust = f" gust {wind.gust_kt} kt" if wind.gust_kt is not None else ""
    return f"Wind: {wind.direction}° {wind.speed_kt} kt{gust}"


def _weather_names(raw: str) -> list[str]:
    hazards = classify_hazards(raw)
    names: list[str] = []
    if hazards.fzfg:
        names.append("Freezing fog")
    elif hazards.fg:
        names.append("Fog")
    if hazards.br:
        names.append("Mist")
    if hazards.sn:
        names.append("Snow")
    if hazards.ra:
        names.append("Rain/Drizzle")
    if hazards.ts:
        names.append("Thunderstorm")
    return names


def decode_metar(raw: str | None) -> list[str]:
    """Decode the headline METAR groups into readable lines."""
    if not raw:
        return []
    lines: list[str] = []
    wind = _wind_line(raw)
    if wind:
        lines.append(wind)
    visibility = parse_visibility_m(raw)
    if visibility is not None:
        shown = "10 km or more" if visibility >= CAVOK_VISIBILITY_M else f"{visibility} m"
        lines.append(f"Visibility: {shown}")
    weather = _weather_names(raw)
    if weather:
        lines.append(f"Weather: {', '.join(weather)}")
    temp_dew = parse_temperature_dewpoint(raw)
    if temp_dew is not None:
        lines.append(f"Temp/Dew point: {temp_dew[0]}°C / {temp_dew[1]}°C")
    qnh = parse_qnh_hpa(raw)
    if qnh is not None:
        lines.append(f"QNH: {qnh} hPa")
    ceiling = parse_ceiling_ft(raw)
    if ceiling is not None:
        lines.append(f"Ceiling: {ceiling} ft AGL")
    return lines


def decode_taf(raw: str | None) -> list[str]:
    """Decode a TAF into validity, worst-case and change-group lines."""
    if not raw:
        return []
    lines: list[str] = []
    validity = parse_validity(raw)
    if validity is not None:
        lines.append(
            f"Valid: day {validity.from_day:02d} {validity.from_hour:02d}Z -> "
            f"day {validity.to_day:02d} {validity.to_hour:02d}Z"
        )
    wind = _wind_line(raw)
    if wind:
        lines.append(wind)
    visibilities = extract_all_visibility_m(raw)
    if "CAVOK" in raw.split():
        lines.append("Visibility: CAVOK")
    elif visibilities:
        lines.append(f"Worst visibility in TAF: {min(visibilities)} m")
    groups = find_change_groups(raw)
    if groups:
        lines.append(f"Change groups: {', '.join(groups)}")
    signals = classify_hazards(raw).labels()
    if signals:
        lines.append(f"Weather signals: {', '.join(signals)}")
    ceiling = parse_ceiling_ft(raw)
    if ceiling is not None:
        lines.append(f"Lowest ceiling in TAF: {ceiling} ft AGL")
    return lines
