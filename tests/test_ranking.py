"""Priority ordering and board filter tests."""

from __future__ import annotations

from typing import Any

import pytest

from wx_hazard_monitor.feed.models import StationReport
from wx_hazard_monitor.stations.deriver import derive_station
from wx_hazard_monitor.stations.models import StationDerived
from wx_hazard_monitor.stations.ranking import (
    filter_stations,
    priority_key,
    sort_stations,
    visibility_bucket,
)


def _station(icao: str, metar: str = "", taf: str = "", **report: Any) -> StationDerived:
    return derive_station(StationReport(icao=icao, metar_raw=metar, taf_raw=taf, **report))


def _with(base: StationDerived, **update: Any) -> StationDerived:
    return base.model_copy(update=update)


@pytest.fixture
def board() -> list[StationDerived]:
    return [
        _station("LIRF", metar="METAR LIRF 181220Z 24005KT CAVOK 15/05 Q1020", iata="FCO"),
        _station(
            "LEMD",
            metar="METAR LEMD 181220Z 00000KT 9999",
            taf="TAF LEMD 180500Z 1806/1912 0100 FG",
            iata="MAD",
            name="Madrid Barajas",
        ),
        _station(
            "EGLL",
            metar="METAR EGLL 181220Z 24008KT 0400 R27/0300 BR OVC004",
            iata="LHR",
            name="London Heathrow",
        ),
        _station("EFHK", metar="METAR EFHK 181220Z 00000KT 0100 FZFG VV001", iata="HEL"),
        _station("KMIA", taf="TAF KMIA 180500Z 1806/1912 +TSRA BKN020CB", iata="MIA"),
    ]


def test_priority_order_leads_with_engine_ice_then_current(board: list[StationDerived]) -> None:
    ordered = [station.icao for station in sort_stations(board)]
    assert ordered == ["EFHK", "EGLL", "LEMD", "KMIA", "LIRF"]


def test_tie_break_chain() -> None:
    base = _station("ZZZZ")
    stations = [
        _with(base, station=StationReport(icao="BBBB"), current_priority=10, forecast_priority=5),
        _with(base, station=StationReport(icao="AAAA"), current_priority=10, forecast_priority=5),
        _with(
            base,
            station=StationReport(icao="CCCC"),
            current_priority=10,
            forecast_priority=5,
            severity_score=40,
        ),
        _with(base, station=StationReport(icao="DDDD"), current_priority=10, forecast_priority=9),
        _with(base, station=StationReport(icao="EEEE"), current_priority=11),
    ]
    assert [s.icao for s in sort_stations(stations)] == ["EEEE", "DDDD", "CCCC", "AAAA", "BBBB"]


def test_sort_is_total_and_stable(board: list[StationDerived]) -> None:
    once = sort_stations(board)
    assert sort_stations(once) == once
    assert sort_stations(list(reversed(board))) == once
    keys = [priority_key(station) for station in once]
    assert len(set(keys)) == len(keys)


def test_alphabetical_mode(board: list[StationDerived]) -> None:
    assert [s.icao for s in sort_stations(board, "alpha")] == [
        "EFHK",
        "EGLL",
        "KMIA",
        "LEMD",
        "LIRF",
    ]


def test_query_matches_codes_and_name_case_insensitively(board: list[StationDerived]) -> None:
    assert [s.icao for s in filter_stations(board, query="heathrow")] == ["EGLL"]
    assert [s.icao for s in filter_stations(board, query=" mad ")] == ["LEMD"]
    assert [s.icao for s in filter_stations(board, query="efhk")] == ["EFHK"]


def test_alert_filter(board: list[StationDerived]) -> None:
    assert [s.icao for s in filter_stations(board, alert="CRIT")] == ["EFHK"]
    assert [s.icao for s in filter_stations(board, alert="OK")] == ["LIRF", "KMIA"]


@pytest.mark.parametrize(
    ("condition", "expected"),
    [
        ("all", ["LIRF", "LEMD", "EGLL", "EFHK", "KMIA"]),
        ("eng", ["EFHK"]),
        ("vis150", ["LEMD", "EFHK"]),
        ("vis500", ["LEMD", "EGLL", "EFHK"]),
        ("rvr300", ["EGLL"]),
        ("rvr200", []),
        ("fog", ["LEMD", "EGLL", "EFHK"]),
        ("ts", ["KMIA"]),
        ("rain", []),
        ("cig500", ["EGLL", "EFHK"]),
    ],
)
def test_condition_filters(
    board: list[StationDerived], condition: str, expected: list[str]
) -> None:
    assert [s.icao for s in filter_stations(board, condition=condition)] == expected


def test_filters_combine(board: list[StationDerived]) -> None:
    assert [s.icao for s in filter_stations(board, alert="CRIT", condition="fog", query="hel")] == [
        "EFHK"
    ]
    assert filter_stations(board, alert="HIGH", condition="eng") == []


def test_unknown_condition_is_rejected(board: list[StationDerived]) -> None:
    with pytest.raises(ValueError, match="Unknown condition filter"):
        filter_stations(board, condition="vis999")


@pytest.mark.parametrize(
    ("visibility", "bucket"),
    [(None, None), (100, 150), (150, 150), (151, 175), (800, 800), (801, None)],
)
def test_visibility_bucket(visibility: int | None, bucket: int | None) -> None:
    assert visibility_bucket(visibility) == bucket
