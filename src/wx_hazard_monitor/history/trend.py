"""Visibility trend indicator between consecutive renders."""

from __future__ import annotations

from typing import Literal

from ..stations.models import StationDerived
from .store import PREVIOUS_VISIBILITY_KEY_PREFIX, KeyValueStore

Trend = Literal["NEW", "DOWN", "UP", "FLAT"]


def display_visibility_m(station: StationDerived) -> int | None:
    """METAR visibility when reported, else the worst visibility across both reports."""
    metar_visibility = station.metar.fields.visibility_m
    return metar_visibility if metar_visibility is not None else station.worst_visibility_m


def visibility_trend(store: KeyValueStore, icao: str, current_m: int | None) -> Trend:
    """Compare against the last stored value, then remember ``current_m``."""
    key = f"{PREVIOUS_VISIBILITY_KEY_PREFIX}{icao.upper()}"
    raw = store.get(key)
    store.set(key, b"" if current_m is None else str(current_m).encode("ascii"))

    if not raw or current_m is None:
        return "NEW"
    try:
        previous = int(raw.decode("ascii"))
    except (UnicodeDecodeError, ValueError):
        return "NEW"
    if current_m < previous:
        return "DOWN"
    if current_m > previous:
        return "UP"
    return "FLAT"
