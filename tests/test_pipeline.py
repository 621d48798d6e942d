"""Monitor cycle tests: derivation, sampling and history gating across cycles."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

from wx_hazard_monitor.history.store import MemoryStore
from wx_hazard_monitor.pipeline import MonitorCycle

GEN = datetime(2026, 3, 18, 12, 20, tzinfo=UTC)
LOGGER = logging.getLogger("test_pipeline")


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "summary_max_samples": 240,
        "events_max_per_station": 30,
        "history_max_stations": 250,
        "history_keep_stations": 200,
        "expected_update_minutes": 10,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _payload(generated_at: datetime | None, egll_metar: str) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "stations": [
            {"icao": "EGLL", "iata": "LHR", "metarRaw": egll_metar},
            {
                "icao": "EFHK",
                "iata": "HEL",
                "metarRaw": "METAR EFHK 181220Z 00000KT 0100 FZFG VV001",
            },
        ]
    }
    if generated_at is not None:
        payload["generatedAt"] = generated_at.isoformat()
    return payload


def test_cycles_gate_history_on_generated_at() -> None:
    store = MemoryStore()
    cycle = MonitorCycle(store, settings=_make_settings(), logger=LOGGER)
    first_metar = "METAR EGLL 181220Z 24008KT 2000 BR"

    first = cycle.run(_payload(GEN, first_metar), now=GEN + timedelta(minutes=2))
    assert first.is_new is True
    assert set(first.events) == {"EGLL", "EFHK"}
    assert first.trends == {"EGLL": "NEW", "EFHK": "NEW"}
    assert first.health.status == "OK"
    assert first.intervals is None
    assert [s.icao for s in first.board.stations] == ["EGLL", "EFHK"]
    assert first.board.get("EFHK").engine_ice_ops is True

    repeat = cycle.run(_payload(GEN, first_metar), now=GEN + timedelta(minutes=3))
    assert repeat.is_new is False
    assert repeat.events == {}
    assert repeat.trends == {"EGLL": "FLAT", "EFHK": "FLAT"}

    later = GEN + timedelta(minutes=30)
    worse_metar = "METAR EGLL 181250Z 24008KT 0600 FG"
    update = cycle.run(_payload(later, worse_metar), now=later + timedelta(minutes=1))
    assert update.is_new is True
    assert [(e.metric, e.direction) for e in update.events["EGLL"]] == [
        ("METAR VIS", "worsened"),
        ("METAR Wx", None),
    ]
    assert "EFHK" not in update.events
    assert update.trends["EGLL"] == "DOWN"
    assert update.sample.delta_min == 30
    assert update.intervals is not None
    assert update.intervals.last_min == 30


def test_unknown_generated_at_skips_history() -> None:
    cycle = MonitorCycle(MemoryStore(), settings=_make_settings(), logger=LOGGER)
    result = cycle.run(_payload(None, "METAR EGLL 181220Z 24008KT 2000"), now=GEN)

    assert result.is_new is True
    assert result.events == {}
    assert result.health.status == "UNKNOWN"
    assert result.board.counts.total == 2


def test_stale_feed_is_flagged() -> None:
    cycle = MonitorCycle(MemoryStore(), settings=_make_settings(), logger=LOGGER)
    result = cycle.run(
        _payload(GEN, "METAR EGLL 181220Z 24008KT 2000"),
        now=GEN + timedelta(minutes=45),
    )
    assert result.health.status == "STALE"
    assert result.health.age_min == 45


def test_state_is_shared_through_the_store() -> None:
    store = MemoryStore()
    payload = _payload(GEN, "METAR EGLL 181220Z 24008KT 2000")
    MonitorCycle(store, settings=_make_settings(), logger=LOGGER).run(payload, now=GEN)

    restarted = MonitorCycle(store, settings=_make_settings(), logger=LOGGER)
    result = restarted.run(payload, now=GEN + timedelta(minutes=1))
    assert result.is_new is False
    assert result.events == {}
    assert len(restarted.summary.samples) == 2
    assert len(restarted.differ.events_for("EGLL")) == 1
