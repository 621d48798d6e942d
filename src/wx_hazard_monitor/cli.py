"""Poll the station feed, derive hazards, record history and print the board."""

from __future__ import annotations

import argparse
import sys
import time
import uuid
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import ConfigError, FeedError, JournalError, StoreError
from .feed.client import FeedClient, load_feed_file
from .history.differ import HISTORY_SORTS, HistoryDiffer, sort_by_history
from .history.store import DirectoryStore
from .journal import JournalWriter
from .log_setup import setup_logger
from .pipeline import CycleResult, MonitorCycle
from .stations.briefing import (
    age_class,
    build_briefing_line,
    decode_metar,
    decode_taf,
    engine_ice_iata_codes,
    format_age,
)
from .stations.models import ALERT_TIERS, StationDerived
from .stations.ranking import CONDITION_FILTERS, filter_stations, sort_stations, visibility_bucket

_TIER_STYLES = {"CRIT": "bold red", "HIGH": "red", "MED": "yellow", "OK": "green"}
_AGE_STYLES = {"fresh": "green", "warn": "yellow", "stale": "red"}
_TREND_MARKS = {"NEW": "NEW", "DOWN": "▼", "UP": "▲", "FLAT": "•0"}


def parse_args() -> argparse.Namespace:
    """Parse monitor CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Derive aerodrome weather hazards from a METAR/TAF station feed."
    )
    parser.add_argument("--input-file", type=Path, default=None, help="Read the feed from a file.")
    parser.add_argument("--url", type=str, default=None, help="Feed URL (overrides FEED_URL).")
    parser.add_argument("--max-cycles", type=int, default=1, help="Number of polling cycles.")
    parser.add_argument(
        "--poll-interval-seconds",
        type=float,
        default=None,
        help="Seconds between cycles (overrides POLL_INTERVAL_SECONDS).",
    )
    parser.add_argument("--sort", choices=["priority", "alpha"], default="priority")
    parser.add_argument("--alert", choices=["all", *ALERT_TIERS], default="all")
    parser.add_argument("--cond", choices=list(CONDITION_FILTERS), default="all")
    parser.add_argument("--query", type=str, default="", help="Match ICAO, IATA or name.")
    parser.add_argument(
        "--max-print",
        type=int,
        default=None,
        help="Number of stations shown on the board.",
    )
    parser.add_argument("--brief", type=str, default=None, help="Print a briefing for one ICAO.")
    parser.add_argument(
        "--events",
        type=str,
        default=None,
        help="Print the recorded history events for one ICAO.",
    )
    parser.add_argument(
        "--history",
        choices=list(HISTORY_SORTS),
        default=None,
        help="Print the station history table sorted by latest deterioration, change or ICAO.",
    )
    return parser.parse_args()


def _validate_cli_input(args: argparse.Namespace, settings: Settings) -> None:
    if args.max_cycles <= 0:
        raise ConfigError("--max-cycles must be > 0.")
    if args.max_print is not None and args.max_print <= 0:
        raise ConfigError("--max-print must be > 0 when provided.")
    if args.poll_interval_seconds is not None and args.poll_interval_seconds < 0:
        raise ConfigError("--poll-interval-seconds must be >= 0 when provided.")
    if args.input_file and args.url:
        raise ConfigError("Use either --input-file or --url, not both.")
    if not (args.input_file or args.url or settings.feed_file or settings.feed_url):
        raise ConfigError(
            "Missing feed source: pass --input-file or --url, or set FEED_FILE/FEED_URL."
        )


def _fmt(value: int | None, unit: str) -> str:
    return "-" if value is None else f"{value}{unit}"


def _low_vis_tag(station: StationDerived) -> str:
    bucket = visibility_bucket(station.worst_visibility_m)
    return "-" if bucket is None else f"VIS≤{bucket}"


def _fmt_time(value: datetime | None) -> str:
    return "-" if value is None else value.astimezone(UTC).strftime("%d %H:%MZ")


def _print_cycle_header(console: Console, result: CycleResult) -> None:
    counts = result.board.counts
    generated = (
        result.snapshot.generated_at.astimezone(UTC).isoformat()
        if result.snapshot.generated_at
        else "-"
    )
    age = format_age(result.health.age_min)
    console.print(
        f"generated_at={generated} age={age} health={result.health.status} "
        f"(limit {result.health.limit_min:g}m) new_data={'yes' if result.is_new else 'no'}"
    )
    if result.intervals is not None:
        console.print(
            f"update_interval avg={result.intervals.average_min:.1f}m "
            f"last={result.intervals.last_min:.1f}m over {result.intervals.samples} changes"
        )
    else:
        console.print("update_interval: need at least 2 distinct updates")
    console.print(
        f"stations={counts.total} metar_missing={counts.metar_missing} "
        f"taf_missing={counts.taf_missing} crit={counts.tiers['CRIT']} "
        f"high={counts.tiers['HIGH']} med={counts.tiers['MED']} ok={counts.tiers['OK']} "
        f"eng_ice={counts.engine_ice_ops} vis175={counts.vis175} "
        f"ts={counts.thunderstorm} cig500={counts.ceiling_below_500}"
    )
    iata_codes = engine_ice_iata_codes(result.board.stations)
    if iata_codes:
        console.print(f"eng_ice_iata={' '.join(iata_codes)}")


def _print_board(
    console: Console,
    result: CycleResult,
    stations: list[StationDerived],
    max_print: int,
) -> None:
    if not stations:
        console.print("No stations match the current filters.")
        return

    shown = min(len(stations), max_print)
    table = Table(title=f"Station Hazard Board ({shown} of {len(result.board.stations)})")
    table.add_column("ICAO")
    table.add_column("IATA")
    table.add_column("Alert")
    table.add_column("Sev", justify="right")
    table.add_column("Trend")
    table.add_column("METAR vis", justify="right")
    table.add_column("Worst vis", justify="right")
    table.add_column("Low vis", no_wrap=True)
    table.add_column("RVR min", justify="right")
    table.add_column("CIG", justify="right")
    table.add_column("Triggers", overflow="fold")
    table.add_column("METAR age")
    table.add_column("TAF age")

    for station in stations[:max_print]:
        report = station.station
        metar_age = report.metar_age_min
        taf_age = report.taf_age_min
        table.add_row(
            report.icao,
            report.iata or "-",
            f"[{_TIER_STYLES[station.alert_tier]}]{station.alert_tier}[/]",
            str(station.severity_score),
            _TREND_MARKS[result.trends.get(report.icao, "NEW")],
            _fmt(station.metar.fields.visibility_m, "m"),
            _fmt(station.worst_visibility_m, "m"),
            _low_vis_tag(station),
            _fmt(station.min_rvr_m, "m"),
            _fmt(station.min_ceiling_ft, "ft"),
            " ".join(f"{trigger.label}({trigger.badge})" for trigger in station.triggers) or "-",
            f"[{_AGE_STYLES[age_class(metar_age)]}]{format_age(metar_age)}[/]",
            f"[{_AGE_STYLES[age_class(taf_age)]}]{format_age(taf_age)}[/]",
        )
    console.print(table)


def _print_briefing(console: Console, result: CycleResult, icao: str) -> None:
    station = result.board.get(icao)
    if station is None:
        console.print(f"Station {icao.upper()} is not in the current feed.")
        return
    console.print(escape(build_briefing_line(station)))
    for title, raw, lines in (
        ("METAR", station.station.metar_raw, decode_metar(station.station.metar_raw)),
        ("TAF", station.station.taf_raw, decode_taf(station.station.taf_raw)),
    ):
        console.print(f"{title}: {escape(raw) or '-'}")
        for line in lines:
            console.print(f"  {escape(line)}")


def _print_events(console: Console, differ: HistoryDiffer, icao: str) -> None:
    events = differ.events_for(icao)
    if not events:
        console.print(f"No history events recorded for {icao.upper()}.")
        return
    table = Table(title=f"History Events {icao.upper()}")
    table.add_column("When (UTC)")
    table.add_column("Event", overflow="fold")
    for event in reversed(events):
        table.add_row(
            event.timestamp.astimezone(UTC).strftime("%Y-%m-%d %H:%MZ"),
            escape(event.describe()),
        )
    console.print(table)


def _print_history(
    console: Console,
    differ: HistoryDiffer,
    stations: list[StationDerived],
    mode: str,
) -> None:
    if not stations:
        console.print("No stations match the history query.")
        return
    table = Table(title=f"Station History (sort {mode})")
    for column in (
        "ICAO",
        "IATA",
        "METAR vis",
        "METAR RVR",
        "METAR gust",
        "METAR Wx",
        "TAF worst vis",
        "TAF RVR",
        "TAF gust",
        "TAF Wx",
        "Worsened",
        "Improved",
        "Changed",
    ):
        table.add_column(column)

    for station in sort_by_history(stations, differ, mode):
        metar, taf = station.metar.fields, station.taf.fields
        times = differ.last_times(station.icao)
        table.add_row(
            station.icao,
            station.station.iata or "-",
            _fmt(metar.visibility_m, "m"),
            _fmt(metar.rvr_min_m, "m"),
            _fmt(metar.max_gust_kt, "kt"),
            metar.hazards.signature or "-",
            _fmt(taf.worst_visibility_m, "m"),
            _fmt(taf.rvr_min_m, "m"),
            _fmt(taf.max_gust_kt, "kt"),
            taf.hazards.signature or "-",
            _fmt_time(times.last_worsened),
            _fmt_time(times.last_improved),
            _fmt_time(times.last_changed),
        )
    console.print(table)


def main() -> int:
    """Run the monitor polling loop."""
    args = parse_args()
    logger = setup_logger()
    console = Console()
    session_id = uuid.uuid4().hex[:12]
    journal: JournalWriter | None = None

    try:
        settings = load_settings()
        _validate_cli_input(args, settings)
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2
    logger.setLevel(settings.log_level)

    try:
        journal = JournalWriter(
            journal_dir=settings.journal_dir,
            raw_payload_dir=settings.raw_payload_dir,
            session_id=session_id,
        )
        journal.write_event(
            event_type="monitor_startup",
            payload={"settings": settings.safe_summary(), "max_cycles": args.max_cycles},
            metadata={"session_id": session_id},
        )
    except JournalError as exc:
        logger.error("Failed to initialize monitor journal: %s", exc)
        return 3

    exit_code = 0
    cycles_processed = 0
    cycle_failures = 0
    client: FeedClient | None = None
    feed_file = args.input_file or (None if args.url else settings.feed_file)
    poll_interval = (
        args.poll_interval_seconds
        if args.poll_interval_seconds is not None
        else settings.poll_interval_seconds
    )
    max_print = args.max_print or settings.max_print

    try:
        monitor = MonitorCycle(DirectoryStore(settings.state_dir), settings=settings, logger=logger)
        if feed_file is None:
            client = FeedClient(settings=settings, logger=logger, url=args.url)

        for cycle_index in range(1, args.max_cycles + 1):
            if cycle_index > 1 and poll_interval > 0:
                time.sleep(poll_interval)
            try:
                payload = load_feed_file(feed_file) if feed_file else client.fetch_latest()
                if settings.journal_raw_payloads:
                    journal.write_raw_feed(payload, cycle_index=cycle_index)
                result = monitor.run(payload)
            except (FeedError, StoreError) as exc:
                cycle_failures += 1
                logger.warning(
                    "Cycle %d/%d failed; continuing to next cycle: %s",
                    cycle_index,
                    args.max_cycles,
                    exc,
                    extra={
                        "cycle_index": cycle_index,
                        "category": getattr(exc, "category", "store"),
                    },
                )
                journal.write_event(
                    "cycle_failure",
                    payload={
                        "cycle_index": cycle_index,
                        "error": str(exc),
                        "category": getattr(exc, "category", "store"),
                        "continue_next_cycle": cycle_index < args.max_cycles,
                    },
                    metadata={"session_id": session_id},
                )
                continue

            cycles_processed += 1
            journal.write_cycle(cycle_index, result)

            stations = filter_stations(
                sort_stations(result.board.stations, args.sort),
                query=args.query,
                alert=args.alert,
                condition=args.cond,
            )
            _print_cycle_header(console, result)
            _print_board(console, result, stations, max_print)
            if args.brief:
                _print_briefing(console, result, args.brief)
            if args.events:
                _print_events(console, monitor.differ, args.events)
            if args.history:
                _print_history(
                    console,
                    monitor.differ,
                    filter_stations(result.board.stations, query=args.query),
                    args.history,
                )

        if cycles_processed == 0 and cycle_failures > 0:
            exit_code = 4
        console.print(f"cycles={cycles_processed} cycle_failures={cycle_failures}")
    except (FeedError, StoreError, JournalError) as exc:
        exit_code = 4
        logger.error("Monitor failure: %s", exc)
        try:
            journal.write_event(
                "monitor_failure",
                payload={"error": str(exc)},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write monitor_failure event.")
    except Exception as exc:  # pragma: no cover - last-resort handler for the CLI
        exit_code = 99
        logger.exception("Unexpected monitor failure: %s", exc)
        try:
            journal.write_event(
                "monitor_failure_unhandled",
                payload={"error": str(exc), "type": type(exc).__name__},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write monitor_failure_unhandled event.")
    finally:
        if client is not None:
            client.close()
        try:
            journal.write_event(
                "monitor_shutdown",
                payload={
                    "exit_code": exit_code,
                    "cycles_processed": cycles_processed,
                    "cycle_failures": cycle_failures,
                },
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write monitor_shutdown event.")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
