"""Normalize a raw feed document into station reports."""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime
from typing import Any

from ..exceptions import FeedError
from ..log_setup import get_logger
from ..reports.timegroup import report_age_minutes
from .models import FeedSnapshot, StationReport

_LOGGER = get_logger("feed")


def parse_feed(
    payload: Any,
    *,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> FeedSnapshot:
    """Build a FeedSnapshot, discarding records without a 4-character ICAO code.

    Missing raw text becomes an empty string. A missing age is derived from
    the report's issue group. Duplicate ICAO codes keep their first record.
    """
    log = logger or _LOGGER
    if not isinstance(payload, dict):
        raise FeedError(
            f"Feed payload must be a JSON object, got {type(payload).__name__}.",
            category="shape",
        )
    now = now or datetime.now(UTC)

    raw_stations = payload.get("stations")
    if not isinstance(raw_stations, list):
        if raw_stations is not None:
            log.warning(
                "Feed 'stations' is %s, not a list; treating as empty.",
                type(raw_stations).__name__,
            )
        raw_stations = []

    stations: list[StationReport] = []
    seen: set[str] = set()
    discarded = 0
    for record in raw_stations:
        station = normalize_station(record, now=now)
        if station is None:
            discarded += 1
            continue
        if station.icao in seen:
            log.warning(
                "Duplicate station %s in feed; keeping first record.",
                station.icao,
                extra={"icao": station.icao},
            )
            discarded += 1
            continue
        seen.add(station.icao)
        stations.append(station)

    return FeedSnapshot(
        generated_at=_parse_datetime(payload.get("generatedAt"), log),
        stations=stations,
        discarded=discarded,
        raw=payload,
    )


def normalize_station(record: Any, *, now: datetime) -> StationReport | None:
    """Map one feed record (with its legacy key aliases) to a StationReport."""
    if not isinstance(record, dict):
        return None
    icao = (_first_string(record, ("icao", "station")) or "").upper()
    if len(icao) != 4:
        return None

    metar_raw = _first_string(record, ("metarRaw", "metar")) or ""
    taf_raw = _first_string(record, ("tafRaw", "taf")) or ""
    metar_age = _first_number(record, ("metarAgeMin", "metarAge"))
    taf_age = _first_number(record, ("tafAgeMin", "tafAge"))
    if metar_age is None:
        metar_age = report_age_minutes(metar_raw, now)
    if taf_age is None:
        taf_age = report_age_minutes(taf_raw, now)

    iata = (_first_string(record, ("iata",)) or "").upper()
    return StationReport(
        icao=icao,
        iata=iata or None,
        name=_first_string(record, ("name", "airportName")),
        metar_raw=metar_raw,
        taf_raw=taf_raw,
        metar_age_min=metar_age,
        taf_age_min=taf_age,
    )


def _first_string(record: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_number(record: dict[str, Any], keys: tuple[str, ...]) -> float | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, bool) or value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            return number
    return None


def _parse_datetime(value: Any, log: logging.Logger) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        log.warning("Unparsable feed generatedAt %r; treating as unknown.", value)
        return None
    return parsed.replace(tzinfo=UTC) if parsed.tzinfo is None else parsed.astimezone(UTC)
