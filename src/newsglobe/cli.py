"""CLI entrypoint for newsglobe article placement."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from .config import AppConfig, resolve_config
from .feed import FeedError, NewsFeedClient
from .placement import apply_decisions, plan_placements, summarize_decisions
from .records import dumps_records, load_records, renderable_points, write_records
from .util import setup_logging
from .validate import ZoneTableValidator, format_report_lines
from .zones import ZoneTable, resolve_zone_table

LOGGER = logging.getLogger("newsglobe.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="newsglobe",
        description="Country-safe placement of news articles on a globe.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default=None, help="Path to YAML config.")
        p.add_argument("--zones", default=None, help="Override the safe-zone YAML table.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    def add_output(p: argparse.ArgumentParser) -> None:
        p.add_argument("--output", default=None, help="Write placed records here (default: stdout).")
        p.add_argument(
            "--renderable-only",
            action="store_true",
            help="Drop records that still lack finite coordinates after placement.",
        )
        p.add_argument(
            "--explain",
            action="store_true",
            help="Emit per-record placement decisions instead of records.",
        )

    place_p = subparsers.add_parser("place", help="Place records from a JSON file.")
    add_common(place_p)
    place_p.add_argument("--input", required=True, help="JSON list or object with 'items'.")
    add_output(place_p)

    fetch_p = subparsers.add_parser("fetch", help="Fetch articles from the news backend and place them.")
    add_common(fetch_p)
    fetch_p.add_argument("--query", default=None, help="Free-text query (q).")
    fetch_p.add_argument("--category", default=None)
    fetch_p.add_argument("--language", default=None)
    fetch_p.add_argument("--page-size", type=int, default=None)
    fetch_p.add_argument("--cache-key", default=None)
    add_output(fetch_p)

    validate_p = subparsers.add_parser("validate-zones", help="Validate the safe-zone table.")
    add_common(validate_p)

    zones_p = subparsers.add_parser("zones", help="Show derived safe zones for a country.")
    add_common(zones_p)
    zones_p.add_argument("country", help="Exact country name, e.g. 'South Korea'.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> tuple[AppConfig, ZoneTable]:
    cfg = resolve_config(args.config)
    setup_logging(cfg.paths.log_file, verbose=args.verbose)
    zones_path = Path(args.zones) if args.zones else cfg.paths.zones
    table = resolve_zone_table(zones_path)
    return cfg, table


def _emit(payload: Any, output: str | None) -> None:
    if output:
        write_records(Path(output), payload)
        LOGGER.info("Wrote %d entries to %s", len(payload), output)
    else:
        sys.stdout.write(dumps_records(payload) + "\n")


def _place_and_emit(
    cfg: AppConfig,
    table: ZoneTable,
    records: list[Any],
    *,
    output: str | None,
    renderable_only: bool,
    explain: bool,
) -> int:
    decisions = plan_placements(records, table, cfg.placement)
    LOGGER.info("Placement summary: %s", summarize_decisions(decisions))
    if explain:
        _emit([decision.to_dict() for decision in decisions], output)
        return 0
    placed = apply_decisions(records, decisions)
    if renderable_only:
        kept = renderable_points(placed)
        LOGGER.info("Dropped %d records without renderable coordinates", len(placed) - len(kept))
        placed = kept
    _emit(placed, output)
    return 0


def _run_place(cfg: AppConfig, table: ZoneTable, args: argparse.Namespace) -> int:
    records = load_records(Path(args.input))
    LOGGER.info("Loaded %d records from %s", len(records), args.input)
    return _place_and_emit(
        cfg,
        table,
        records,
        output=args.output,
        renderable_only=bool(args.renderable_only),
        explain=bool(args.explain),
    )


def _run_fetch(cfg: AppConfig, table: ZoneTable, args: argparse.Namespace) -> int:
    client = NewsFeedClient(cfg.feed)
    try:
        records = client.fetch_articles(
            query=args.query,
            category=args.category,
            language=args.language,
            page_size=args.page_size,
            cache_key=args.cache_key,
        )
    finally:
        client.close()
    return _place_and_emit(
        cfg,
        table,
        list(records),
        output=args.output,
        renderable_only=bool(args.renderable_only),
        explain=bool(args.explain),
    )


def _run_validate_zones(cfg: AppConfig, table: ZoneTable) -> int:
    report = ZoneTableValidator(table, cfg.placement.default_inset_pct).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_zones(cfg: AppConfig, table: ZoneTable, country: str) -> int:
    definition = table.get(country)
    if definition is None:
        LOGGER.error("Unknown country '%s' (names are case-sensitive).", country)
        return 1
    payload = {
        "country": definition.name,
        "bounds": definition.bounds.to_dict(),
        "uses_patches": bool(definition.patches),
        "safe_zones": [
            zone.to_dict() for zone in definition.safe_zones(cfg.placement.default_inset_pct)
        ],
    }
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    try:
        cfg, table = _load_and_setup(args)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("Failed loading configuration: %s", exc)
        return 1

    command = str(args.command)
    try:
        if command == "place":
            return _run_place(cfg, table, args)
        if command == "fetch":
            return _run_fetch(cfg, table, args)
        if command == "validate-zones":
            return _run_validate_zones(cfg, table)
        if command == "zones":
            return _run_zones(cfg, table, str(args.country))
    except (FileNotFoundError, ValueError, FeedError) as exc:
        LOGGER.error("%s failed: %s", command, exc)
        return 1
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
