"""Briefing line, decoded report and report-age tests."""

from __future__ import annotations

import pytest

from wx_hazard_monitor.feed.models import StationReport
from wx_hazard_monitor.stations.briefing import (
    age_class,
    build_briefing_line,
    decode_metar,
    decode_taf,
    engine_ice_iata_codes,
    format_age,
)
from wx_hazard_monitor.stations.deriver import derive_station

EFHK_METAR = "METAR EFHK 181220Z 00000KT 0100 FZFG VV001 M02/M03 Q1020"
EFHK_TAF = "TAF EFHK 180500Z 1806/1912 00000KT 0200 FZFG VV001 BECMG 1810/1812 2000 BR"


def test_briefing_line_for_engine_ice_station() -> None:
    station = derive_station(
        StationReport(icao="EFHK", iata="HEL", metar_raw=EFHK_METAR, taf_raw=EFHK_TAF)
    )
    assert build_briefing_line(station) == (
        "EFHK/HEL | ALERT CRIT (sev 100) | ENG ICE OPS | METAR VIS 100m | WORST VIS 100m"
        " | CIG 100ft | TRG ENG ICE OPS(M),VIS≤150(M),CIG<500(M+T),FZFG(M+T),BR(T)"
    )


def test_briefing_line_for_quiet_station_without_iata() -> None:
    station = derive_station(StationReport(icao="LEMD", metar_raw="METAR LEMD 181200Z CAVOK"))
    assert build_briefing_line(station) == (
        "LEMD/- | ALERT OK (sev 0) | METAR VIS 10000m | WORST VIS 10000m"
    )


def test_decode_metar() -> None:
    assert decode_metar(EFHK_METAR) == [
        "Wind: 000° 0 kt",
        "Visibility: 100 m",
        "Weather: Freezing fog",
        "Temp/Dew point: -2°C / -3°C",
        "QNH: 1020 hPa",
        "Ceiling: 100 ft AGL",
    ]
    assert decode_metar("METAR LEMD 181200Z 27005G15KT CAVOK")[:2] == [
        "Wind: 270° 5 kt gust 15 kt",
        "Visibility: 10 km or more",
    ]
    assert decode_metar(None) == []


def test_decode_taf() -> None:
    assert decode_taf(EFHK_TAF) == [
        "Valid: day 18 06Z -> day 19 12Z",
        "Wind: 000° 0 kt",
        "Worst visibility in TAF: 200 m",
        "Change groups: BECMG",
        "Weather signals: FZFG, BR",
        "Lowest ceiling in TAF: 100 ft AGL",
    ]
    assert "Visibility: CAVOK" in decode_taf("TAF LEMD 180500Z 1806/1912 27005KT CAVOK")
    assert decode_taf("") == []


@pytest.mark.parametrize(
    ("age", "text", "klass"),
    [
        (None, "-", "stale"),
        (12.4, "12m", "fresh"),
        (20, "20m", "fresh"),
        (45, "45m", "warn"),
        (60, "60m", "warn"),
        (61, "61m", "stale"),
    ],
)
def test_report_age(age: float | None, text: str, klass: str) -> None:
    assert format_age(age) == text
    assert age_class(age) == klass


def test_engine_ice_iata_codes_cap_and_skip_missing() -> None:
    reports = [
        StationReport(icao=f"EF{index:02d}", iata=f"h{index:02d}", metar_raw=EFHK_METAR)
        for index in range(12)
    ]
    reports.append(StationReport(icao="EFRO", metar_raw=EFHK_METAR))
    reports.append(StationReport(icao="LEMD", iata="MAD", metar_raw="METAR LEMD 181200Z CAVOK"))
    stations = [derive_station(report) for report in reports]

    codes = engine_ice_iata_codes(stations)
    assert codes == [f"H{index:02d}" for index in range(10)] + ["+2"]
    assert engine_ice_iata_codes(stations[:2]) == ["H00", "H01"]
    assert engine_ice_iata_codes(stations[-2:]) == []
