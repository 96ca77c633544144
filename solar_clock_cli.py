"""Command-line front end for the solar clock."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, date, datetime
from typing import List, Optional

from solarclock import GeoCoordinate, SolarClock, SolarClockError, compute_events
from solarclock.config import ClockSettings, load_clock_config
from solarclock.constants import OUTPUT_FORMAT

LOGGER = logging.getLogger("solar-clock")


def _parse_instant(text: Optional[str]) -> datetime:
    if text is None:
        return datetime.now(UTC).astimezone()
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        # Naive input is read in the machine's local zone.
        value = value.astimezone()
    return value


def _coordinate(args: argparse.Namespace, settings: ClockSettings) -> GeoCoordinate:
    if args.lat is None and args.lon is None:
        return settings.coordinate
    if args.lat is None or args.lon is None:
        raise SystemExit("--lat and --lon must be given together.")
    return GeoCoordinate(args.lat, args.lon, args.elev)


def _format(dt: Optional[datetime]) -> str:
    return dt.strftime(OUTPUT_FORMAT) if dt is not None else "-"


def _cmd_convert(args: argparse.Namespace, settings: ClockSettings) -> int:
    coordinate = _coordinate(args, settings)
    clock = SolarClock(coordinate, settings.reference)
    instants = args.at or [None]

    print("=== Solar Clock Calculation ===")
    print(f"Coordinates: Lat {coordinate.latitude}, Lon {coordinate.longitude}")
    for raw in instants:
        dt_input = _parse_instant(raw)
        result = clock.convert(dt_input)
        print(f"\nInput Time:         {_format(dt_input)}")
        print(f"Delta (Model):      {result.delta_seconds:.3f} seconds")
        print(f"Solar Clock Time:   {result.formatted}")
        if result.extrapolated:
            print("Warning:            outside the anchor window (extrapolated)")
    return 0


def _cmd_events(args: argparse.Namespace, settings: ClockSettings) -> int:
    coordinate = _coordinate(args, settings)
    day = date.fromisoformat(args.date) if args.date else datetime.now(UTC).date()
    events = compute_events(day, coordinate, settings.reference.twilight)
    tz = settings.reference.tz
    print(f"Date (UTC):  {day.isoformat()}  status: {events.status}")
    for label, instant in (
        ("Sunrise", events.sunrise),
        ("Solar noon", events.noon),
        ("Sunset", events.sunset),
    ):
        local = instant.astimezone(tz) if instant is not None else None
        print(f"{label + ':':<12} {_format(instant)}  ({_format(local)})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solar-clock",
        description="Convert civil time to solar clock time.",
    )
    parser.add_argument("--config", type=str, default=None, help="JSON configuration file")
    parser.add_argument("--lat", type=float, default=None, help="Latitude in degrees")
    parser.add_argument("--lon", type=float, default=None, help="Longitude in degrees")
    parser.add_argument("--elev", type=float, default=0.0, help="Elevation in meters")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    convert = sub.add_parser("convert", help="Convert civil instants (default: now)")
    convert.add_argument(
        "--at",
        action="append",
        default=None,
        help="ISO-8601 date-time, repeatable; naive values use the local zone",
    )

    events = sub.add_parser("events", help="Print real solar events for a UTC date")
    events.add_argument("--date", type=str, default=None, help="YYYY-MM-DD (UTC date)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING, format="%(message)s"
    )

    try:
        settings = load_clock_config(args.config)
        if args.command == "events":
            return _cmd_events(args, settings)
        if args.command is None:
            args.at = None
        return _cmd_convert(args, settings)
    except (SolarClockError, ValueError) as exc:
        LOGGER.error(json.dumps({"event": "error", "error": str(exc)}))
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
