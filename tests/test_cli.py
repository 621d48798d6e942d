"""Monitor CLI offline smoke tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from wx_hazard_monitor.cli import _low_vis_tag
from wx_hazard_monitor.cli import main as monitor_main
from wx_hazard_monitor.feed.models import StationReport
from wx_hazard_monitor.stations.deriver import derive_station

FIXTURE = Path(__file__).parent / "fixtures" / "station_feed.json"


def _set_required_env(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("JOURNAL_DIR", str(tmp_path / "journal"))
    monkeypatch.setenv("RAW_PAYLOAD_DIR", str(tmp_path / "raw"))
    monkeypatch.setenv("STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.delenv("FEED_URL", raising=False)
    monkeypatch.delenv("FEED_FILE", raising=False)


def _journal_event_types(tmp_path: Path) -> list[str]:
    journal_files = list((tmp_path / "journal").glob("*.jsonl"))
    assert journal_files
    return [
        json.loads(line)["event_type"]
        for line in journal_files[0].read_text(encoding="utf-8").strip().splitlines()
    ]


def test_cli_offline_smoke(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "wx-hazard-monitor",
            "--input-file",
            str(FIXTURE),
            "--brief",
            "efhk",
            "--events",
            "EGLL",
        ],
    )

    exit_code = monitor_main()
    assert exit_code == 0

    output = capsys.readouterr().out
    assert "Station Hazard Board (4 of 4)" in output
    assert "stations=4" in output
    assert "eng_ice=1" in output
    assert "eng_ice_iata=HEL" in output
    assert "Low vis" in output
    positions = [output.index(icao) for icao in ("EFHK", "EGLL", "KMIA", "LEMD")]
    assert positions == sorted(positions)
    assert "ALERT CRIT (sev 100)" in output
    assert "Visibility: 100 m" in output
    assert "History Events EGLL" in output
    assert "METAR VIS [METAR]: initial: 400 m" in output
    assert "cycles=1 cycle_failures=0" in output

    event_types = _journal_event_types(tmp_path)
    assert event_types[0] == "monitor_startup"
    assert "cycle_summary" in event_types
    assert "history_events" in event_types
    assert event_types[-1] == "monitor_shutdown"
    assert (tmp_path / "state" / "wxmonitor_station_events_v1.json").exists()


def test_cli_second_cycle_sees_unchanged_feed(
    monkeypatch: Any, tmp_path: Path, capsys: Any
) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setenv("JOURNAL_RAW_PAYLOADS", "true")
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "wx-hazard-monitor",
            "--input-file",
            str(FIXTURE),
            "--max-cycles",
            "2",
            "--poll-interval-seconds",
            "0",
            "--cond",
            "eng",
        ],
    )

    assert monitor_main() == 0
    output = capsys.readouterr().out
    assert output.count("Station Hazard Board (1 of 4)") == 2
    assert "new_data=yes" in output
    assert "new_data=no" in output
    assert "cycles=2 cycle_failures=0" in output
    assert len(list((tmp_path / "raw").glob("*_station_feed_*.json"))) == 2
    assert _journal_event_types(tmp_path).count("history_events") == 1


def test_cli_missing_feed_file_fails_every_cycle(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        ["wx-hazard-monitor", "--input-file", str(tmp_path / "missing.json")],
    )

    assert monitor_main() == 4
    event_types = _journal_event_types(tmp_path)
    assert "cycle_failure" in event_types
    assert "cycle_summary" not in event_types


def test_cli_invalid_max_cycles(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        ["wx-hazard-monitor", "--input-file", str(FIXTURE), "--max-cycles", "0"],
    )
    assert monitor_main() == 2


def test_cli_requires_a_feed_source(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setattr(sys, "argv", ["wx-hazard-monitor"])
    assert monitor_main() == 2


def test_cli_invalid_settings(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setenv("HISTORY_KEEP_STATIONS", "300")
    monkeypatch.setattr(sys, "argv", ["wx-hazard-monitor", "--input-file", str(FIXTURE)])
    assert monitor_main() == 2


def test_cli_history_table_follows_query(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        ["wx-hazard-monitor", "--input-file", str(FIXTURE), "--history", "chg", "--query", "hel"],
    )

    assert monitor_main() == 0
    output = capsys.readouterr().out
    history = output[output.index("Station History (sort chg)") :]
    assert "EFHK" in history
    assert "FZFG" in history
    assert "LEMD" not in history


def test_low_vis_tag_uses_worst_visibility() -> None:
    fog = derive_station(
        StationReport(
            icao="EGLL",
            metar_raw="METAR EGLL 181220Z 24008KT 9999",
            taf_raw="TAF EGLL 180500Z 1806/1912 24010KT 3000 TEMPO 1808/1812 0200 FG",
        )
    )
    clear = derive_station(StationReport(icao="LEMD", metar_raw="METAR LEMD 181200Z CAVOK"))

    assert _low_vis_tag(fog) == "VIS≤250"
    assert _low_vis_tag(clear) == "-"
