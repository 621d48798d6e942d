"""Field extractor tests for METAR/TAF token parsing."""

from __future__ import annotations

import pytest

from wx_hazard_monitor.reports.extractor import (
    CAVOK_VISIBILITY_M,
    extract_all_visibility_m,
    extract_fields,
    extract_rvr_m,
    find_change_groups,
    parse_ceiling_ft,
    parse_issue_group,
    parse_max_gust_kt,
    parse_qnh_hpa,
    parse_temperature_dewpoint,
    parse_validity,
    parse_visibility_m,
    parse_wind,
)

FOGGY_METAR = "METAR EGLL 181220Z 24012G25KT 0100 R27L/0300 FZFG VV001 M02/M03 Q1020="
TAF_WITH_CHANGES = (
    "TAF EGLL 180500Z 1806/1912 24010KT 6000 BKN012 "
    "TEMPO 1808/1812 0400 FG BKN002 "
    "BECMG 1814/1816 9999 NSW SCT030 "
    "PROB30 1900/1906 0800 BR"
)


def test_cavok_yields_ten_kilometres() -> None:
    assert parse_visibility_m("METAR LEMD 181200Z 27005KT CAVOK 20/05 Q1018") == 10000


def test_9999_is_folded_into_ten_kilometres() -> None:
    assert parse_visibility_m("METAR LFPG 181200Z 27005KT 9999 FEW040 15/08 Q1015") == (
        CAVOK_VISIBILITY_M
    )


def test_rvr_token_is_not_taken_as_visibility() -> None:
    raw = "METAR EDDF 181220Z 27004KT R27/0600 2000 BR OVC003 05/04 Q1012"
    assert parse_visibility_m(raw) == 2000
    assert extract_rvr_m(raw) == [600]


@pytest.mark.parametrize(
    "raw",
    [
        "TAF EHAM 180500Z 0818/0918 24010KT",
        "METAR EHAM 181220Z R18C/1200",
        "METAR EHAM 181220Z 1200/",
        "METAR EHAM 181220Z /1200",
    ],
)
def test_slash_adjacent_groups_are_never_visibility(raw: str) -> None:
    assert parse_visibility_m(raw) is None
    assert extract_all_visibility_m(raw) == []


def test_visibility_uses_first_standalone_group() -> None:
    assert parse_visibility_m("METAR EGKK 181220Z 20008KT 3000 1500NE BR") == 3000


def test_trailing_terminator_is_ignored() -> None:
    assert parse_visibility_m("METAR EGKK 181220Z 20008KT 0350=") == 350


def test_empty_and_absent_text_yield_nothing() -> None:
    for raw in ("", None, "   "):
        assert parse_visibility_m(raw) is None
        assert extract_all_visibility_m(raw) == []
        assert extract_rvr_m(raw) == []
        assert parse_ceiling_ft(raw) is None
        assert parse_max_gust_kt(raw) is None
        assert parse_issue_group(raw) is None


def test_taf_returns_every_visibility_group() -> None:
    assert extract_all_visibility_m(TAF_WITH_CHANGES) == [6000, 400, 10000, 800]
    fields = extract_fields(TAF_WITH_CHANGES)
    assert fields.visibility_m == 6000
    assert fields.worst_visibility_m == 400


def test_rvr_collects_both_bounds_of_variable_groups() -> None:
    raw = "METAR LFPG 181230Z 00000KT 0150 R26L/P1500 R27R/0250V0600U R09C/M0050N FG"
    assert extract_rvr_m(raw) == [1500, 250, 600, 50]


def test_ceiling_is_lowest_broken_overcast_or_vertical_visibility() -> None:
    raw = "METAR KJFK 181251Z 18010KT 2SM BR FEW004 BKN009 OVC015 VV007"
    assert parse_ceiling_ft(raw) == 700


def test_ceiling_accepts_convective_suffix_but_not_longer_words() -> None:
    assert parse_ceiling_ft("TAF KMIA 180500Z 1806/1912 BKN020CB") == 2000
    assert parse_ceiling_ft("TAF KMIA 180500Z 1806/1912 OVC0100") is None
    assert parse_ceiling_ft("SCT010 FEW004") is None


def test_gust_is_maximum_over_all_wind_groups() -> None:
    raw = "TAF EGPF 180500Z 1806/1912 24015G28KT TEMPO 1810/1816 26025G42KT"
    assert parse_max_gust_kt(raw) == 42
    assert parse_max_gust_kt("METAR EGPF 181220Z 24015KT 9999") is None


def test_headline_wind_group() -> None:
    wind = parse_wind(FOGGY_METAR)
    assert wind is not None
    assert (wind.direction, wind.speed_kt, wind.gust_kt) == ("240", 12, 25)
    variable = parse_wind("METAR LIRF 181220Z VRB02KT CAVOK")
    assert variable is not None
    assert (variable.direction, variable.gust_kt) == ("VRB", None)


def test_issue_group_is_validated() -> None:
    assert parse_issue_group(FOGGY_METAR) == "181220Z"
    assert parse_issue_group("METAR EGLL 321220Z 24012KT") is None
    assert parse_issue_group("METAR EGLL 182460Z 24012KT") is None


def test_taf_validity_temperature_and_qnh() -> None:
    validity = parse_validity(TAF_WITH_CHANGES)
    assert validity is not None
    assert (validity.from_day, validity.from_hour, validity.to_day, validity.to_hour) == (
        18,
        6,
        19,
        12,
    )
    assert parse_temperature_dewpoint(FOGGY_METAR) == (-2, -3)
    assert parse_qnh_hpa(FOGGY_METAR) == 1020


def test_change_groups_are_listed_in_fixed_order() -> None:
    assert find_change_groups(TAF_WITH_CHANGES) == ["TEMPO", "BECMG", "PROB"]
    assert find_change_groups("TAF KSFO 180500Z 1806/1912 FM181800 27012KT") == ["FM"]


def test_extract_fields_collects_everything() -> None:
    fields = extract_fields(FOGGY_METAR)
    assert fields.visibility_m == 100
    assert fields.rvr_values_m == (300,)
    assert fields.rvr_min_m == 300
    assert fields.ceiling_ft == 100
    assert fields.max_gust_kt == 25
    assert fields.issue_group == "181220Z"
    assert fields.hazards.fzfg is True
    assert fields.hazards.fg is False


def test_extraction_is_idempotent() -> None:
    assert extract_fields(TAF_WITH_CHANGES) == extract_fields(TAF_WITH_CHANGES)
