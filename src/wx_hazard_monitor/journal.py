"""Append-only JSONL journal of monitor cycles plus raw feed snapshots.

Each line is ``{ts, event_type, session_id, payload, metadata}``. Payloads are
redacted before serialization; the journal never holds a feed credential.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .exceptions import JournalError
from .history.models import HistoryEvent
from .pipeline import CycleResult
from .redaction import sanitize_for_logging, sanitize_text


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC).isoformat()
        return value.astimezone(UTC).isoformat()
    if isinstance(value, Path):
        return str(value)
    # Objects with a meaningful __str__ (pydantic AnyUrl) serialize as text.
    if hasattr(value, "__str__") and type(value).__str__ is not object.__str__:
        return sanitize_text(str(value))
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def cycle_summary_payload(cycle_index: int, result: CycleResult) -> dict[str, Any]:
    """Counts, feed health and freshness for one processed cycle."""
    return {
        "cycle_index": cycle_index,
        "fetched_at": result.fetched_at,
        "generated_at": result.snapshot.generated_at,
        "is_new": result.is_new,
        "discarded_records": result.snapshot.discarded,
        "health": result.health.model_dump(mode="json"),
        "intervals": (
            result.intervals.model_dump(mode="json") if result.intervals is not None else None
        ),
        "counts": result.board.counts.model_dump(mode="json"),
        "alerts": {
            station.icao: station.alert_tier
            for station in result.board.stations
            if station.alert_tier != "OK"
        },
    }


def history_events_payload(
    cycle_index: int,
    events: dict[str, list[HistoryEvent]],
) -> dict[str, Any]:
    return {
        "cycle_index": cycle_index,
        "event_count": sum(len(items) for items in events.values()),
        "events": {
            icao: [event.model_dump(mode="json") for event in items]
            for icao, items in events.items()
        },
    }


class JournalWriter:
    """Writes monitor records to a daily JSONL file and raw feeds to disk."""

    def __init__(self, journal_dir: Path, raw_payload_dir: Path, session_id: str) -> None:
        self.journal_dir = journal_dir
        self.raw_payload_dir = raw_payload_dir
        self.session_id = session_id
        self.journal_dir.mkdir(parents=True, exist_ok=True)
        self.raw_payload_dir.mkdir(parents=True, exist_ok=True)
        self.events_path = self.journal_dir / f"monitor_{datetime.now(UTC):%Y%m%d}.jsonl"

    def write_event(
        self,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Append a single event record to the JSONL journal."""
        record: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "event_type": event_type,
            "session_id": self.session_id,
            "payload": sanitize_for_logging(payload),
            "metadata": sanitize_for_logging(metadata or {}),
        }
        try:
            line = json.dumps(record, default=_json_default)
            with self.events_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing event journal: {exc}") from exc

    def write_cycle(self, cycle_index: int, result: CycleResult) -> None:
        """Record a processed cycle, then its history events when any were emitted."""
        metadata = {"session_id": self.session_id}
        self.write_event("cycle_summary", cycle_summary_payload(cycle_index, result), metadata)
        if result.events:
            self.write_event(
                "history_events",
                history_events_payload(cycle_index, result.events),
                metadata,
            )

    def write_raw_feed(self, payload: Any, *, cycle_index: int) -> Path:
        """Write the retrieved feed document, credentials redacted, and return its path."""
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        output_path = (
            self.raw_payload_dir
            / f"{timestamp}_{self.session_id}_station_feed_{cycle_index}.json"
        )
        try:
            text = json.dumps(
                sanitize_for_logging(payload),
                ensure_ascii=False,
                indent=2,
                default=_json_default,
            )
            output_path.write_text(text + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing raw feed snapshot: {exc}") from exc
        return output_path
