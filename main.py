#!/usr/bin/env python3
"""Entry point for the weather dashboard.

Subcommands:
    web              Start the proxy web server
    day              Print a day summary for a location
    radar            Print the available radar frames (--play loops them)
"""

import argparse
import logging

from wxdash import create_app
from wxdash.background import play
from wxdash.client import DashboardSession, ViewParams
from wxdash.config import RADAR_STEP_MS, SERVER_PORT, STATE_FILE
from wxdash.display import format_number, format_precip
from wxdash.radar import fetch_frames, tile_url
from wxdash.state import StateStore


def run_web(args):
    app = create_app()
    print(f"[Server] Serving weather proxy at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port)


def run_day(args):
    store = StateStore(STATE_FILE).load()
    session = DashboardSession(store=store)
    unit = args.unit or store.unit
    params = ViewParams(lat=args.lat, lon=args.lon, name=args.name, unit=unit, date=args.date, tz=args.tz)
    try:
        view = session.day_view(params)
        if view is None:
            print(session.error)
            return 1

        labels = view["labels"]
        print(f"{params.name or 'Location'}, {view['date']}")
        if view["range"].empty:
            print("No hourly data.")
            return 0
        temp = view["temperature"]
        print(f"  Temperature  High {format_number(temp.max, suffix=labels['temp'])}"
              f"  Low {format_number(temp.min, suffix=labels['temp'])}")
        feels = view["feelsLike"]
        print(f"  Feels like   High {format_number(feels.max, suffix=labels['temp'])}"
              f"  Low {format_number(feels.min, suffix=labels['temp'])}")
        print(f"  Wind         Max {format_number(view['wind'].max)} {labels['wind']}"
              f"  Gusts {format_number(view['gusts'].max)} {labels['wind']}")
        print(f"  Precip       Total {format_precip(view['precipTotal'], unit)} {labels['precip']}"
              f"  Chance {format_number(view['precipChance'].max, suffix='%')}")
        print(f"  Humidity     {format_number(view['humidity'].avg, suffix='%')}")
        print(f"  Cloud cover  {format_number(view['cloudCover'].avg, suffix='%')}")
        print(f"  UV index     {format_number(view['uvIndex'].max)}")
        store.add_recent_place(params.name or "Location", args.lat, args.lon, args.tz)
        return 0
    finally:
        session.guard.invalidate()
        store.save()


def run_radar(args):
    frames = fetch_frames()
    if not frames:
        print("No radar frames; latest static layer only.")
        return 1
    for frame in frames:
        print(f"{frame.time}  {tile_url(frame.path)}")
    if args.play:
        try:
            play(frames, args.play, step_ms=args.step)
        except KeyboardInterrupt:
            print("\nStopped.")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Weather Dashboard")
    subparsers = parser.add_subparsers(dest="command")

    web_parser = subparsers.add_parser("web", help="Start the proxy web server")
    web_parser.add_argument(
        "--host", default="0.0.0.0", help="Bind address",
    )
    web_parser.add_argument(
        "--port", type=int, default=SERVER_PORT, help="Port",
    )

    day_parser = subparsers.add_parser("day", help="Summarize one day at a location")
    day_parser.add_argument("--lat", type=float, required=True)
    day_parser.add_argument("--lon", type=float, required=True)
    day_parser.add_argument("--date", required=True, help="YYYY-MM-DD")
    day_parser.add_argument("--unit", choices=["us", "metric"], default=None)
    day_parser.add_argument("--name", default=None)
    day_parser.add_argument("--tz", default=None, help="IANA timezone (default: location's)")

    radar_parser = subparsers.add_parser("radar", help="List available radar frames")
    radar_parser.add_argument(
        "--play", type=float, default=0, metavar="SECONDS", help="Loop the frames for this many seconds",
    )
    radar_parser.add_argument(
        "--step", type=int, default=RADAR_STEP_MS, help="Milliseconds per frame",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "web":
        run_web(args)
    elif args.command == "day":
        return run_day(args)
    elif args.command == "radar":
        return run_radar(args)
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
