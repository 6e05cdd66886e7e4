#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Main entry point for the meso weather dashboard.
"""

import argparse
import logging
import sys
import time

from . import __version__
from .backends import aviationweatherdotgov, nbm, spc
from .backends.common import download
from .config import APP_NAME, LOG_FORMAT, Settings
from .meso_classes import (OUTLOOK_IMAGE_KINDS, OUTLOOK_LAYERS, ConfigError,
                           MesoError, outlook_image_url)
from .meso_fetch import build_dashboard, download_images, resolve_station_location
from .report import RENDERERS, current_lines

logger = logging.getLogger(APP_NAME)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def positive_int(value):
    """argparse type for intervals: a whole number of seconds, at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("{!r} is not a whole number".format(value)) from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1, got {}".format(number))
    return number


def parse_arguments(argv=None):
    """Parse command line arguments."""
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = argparse.ArgumentParser(
        prog=APP_NAME, description="NWS/SPC weather products for a location")
    parser.add_argument("--version", action="version",
                        version="%(prog)s {}".format(__version__))
    parser.add_argument("--lat", type=float, help="Latitude of the point")
    parser.add_argument("--lon", type=float, help="Longitude of the point")
    parser.add_argument("--station", help="Station id for the NBM and METAR (e.g. KHSV)")
    parser.add_argument("--from-station", action="store_true",
                        help="Use the station's coordinates as the point")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging, repeat for debug")

    sub = parser.add_subparsers(dest="command")

    dash = sub.add_parser("dashboard", help="Everything at once (default)")
    dash.add_argument("-f", "--format", choices=sorted(RENDERERS), default="txt",
                      help="Output format")
    dash.add_argument("-o", "--output", help="Write the report here instead of stdout")
    dash.add_argument("--download", action="store_true",
                      help="Also download the outlook maps into the cache")
    dash.add_argument("--watch", type=positive_int, metavar="SECONDS",
                      help="Keep refreshing every SECONDS")

    risk = sub.add_parser("risk", help="SPC Day 1 risk at the point")
    risk.add_argument("--layer", choices=sorted(OUTLOOK_LAYERS),
                      help="Just one outlook layer")

    sub.add_parser("daycast", help="NBM high and low for the station")

    metar = sub.add_parser("metar", help="Current conditions at the station")
    metar.add_argument("--hours", type=int,
                       help="Print the raw METARs from the last N hours instead")

    outlook = sub.add_parser("outlook", help="SPC Day 1 outlook map")
    outlook.add_argument("--kind", choices=OUTLOOK_IMAGE_KINDS, default="categorical")
    outlook.add_argument("--download", action="store_true",
                         help="Download the map into the cache")

    climate = sub.add_parser("climate", help="CPC 6-10 day temperature outlook map")
    climate.add_argument("--download", action="store_true",
                         help="Download the map into the cache")

    sub.add_parser("station", help="Show the station's location")

    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(argv + ["dashboard"])
    return args


def setup_logging(settings, verbose):
    """Configure root logging from settings, -v bumps it up."""
    level = logging.getLevelName(settings.log_level)
    if verbose == 1:
        level = min(level, logging.INFO)
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT)


def load_settings(args, settings):
    """Environment settings with the command line laid over them."""
    settings = settings.replace(lat=args.lat, lon=args.lon, station=args.station)
    if args.from_station:
        settings = resolve_station_location(settings)
    return settings


def _write(text, output=None):
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("Report saved to: %s", output)
    else:
        print(text)


def run_dashboard(settings, args):
    """One dashboard, or a dashboard every --watch seconds."""
    render = RENDERERS[args.format]
    while True:
        dashboard = build_dashboard(settings)
        if args.download:
            download_images(dashboard, settings)
        _write(render(dashboard), args.output)
        if not args.watch:
            return EXIT_FAILED if dashboard.all_failed else EXIT_OK
        time.sleep(args.watch)


def run_risk(settings, args):
    loc = settings.location
    opts = {"timeout": settings.timeout, "retries": settings.retries}
    if args.layer:
        risks = {args.layer: spc.fetch_risk(args.layer, loc.lat, loc.lon, **opts)}
    else:
        risks = spc.fetch_day1_risks(loc.lat, loc.lon, **opts)
    for name, risk in risks.items():
        print("{:<12}{:<6}{}".format(name, risk.label, risk.description))
    return EXIT_OK


def run_daycast(settings, args):
    daycast = nbm.fetch_daycast(settings.location.station,
                                timeout=settings.timeout, retries=settings.retries)
    print("{} high {}°F low {}°F".format(daycast.station, daycast.high, daycast.low))
    if daycast.issued:
        print("NBM cycle {}".format(daycast.issued))
    return EXIT_OK


def run_metar(settings, args):
    station = settings.location.station
    opts = {"timeout": settings.timeout, "retries": settings.retries}
    if args.hours:
        for raw in aviationweatherdotgov.get_metars(station, args.hours, **opts):
            print(raw)
        return EXIT_OK
    metar = aviationweatherdotgov.get_current_metar(station, **opts)
    if metar is None:
        print("No recent observation from {}".format(station))
        return EXIT_FAILED
    print(metar.metar_string)
    print("\n".join(current_lines(metar)))
    return EXIT_OK


def _show_image(url, settings, fetch):
    print(url)
    if fetch:
        print(download(url, settings.cache_dir, settings.cache_ttl,
                       timeout=settings.timeout, retries=settings.retries))
    return EXIT_OK


def run_outlook(settings, args):
    return _show_image(outlook_image_url(args.kind), settings, args.download)


def run_climate(settings, args):
    return _show_image(spc.CLIMATE_OUTLOOK_URL, settings, args.download)


def run_station(settings, args):
    site = aviationweatherdotgov.get_station_coords(
        settings.location.station, timeout=settings.timeout, retries=settings.retries)
    for key, value in site.as_dict().items():
        print("{}: {}".format(key, value))
    return EXIT_OK


COMMANDS = {
    "dashboard": run_dashboard,
    "risk": run_risk,
    "daycast": run_daycast,
    "metar": run_metar,
    "outlook": run_outlook,
    "climate": run_climate,
    "station": run_station,
}


def main(argv=None):
    """Main function."""
    args = parse_arguments(argv)
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        print("{}: {}".format(APP_NAME, exc), file=sys.stderr)
        return EXIT_CONFIG
    # before the station lookup, so its retries are logged properly
    setup_logging(settings, args.verbose)

    try:
        settings = load_settings(args, settings)
    except ConfigError as exc:
        print("{}: {}".format(APP_NAME, exc), file=sys.stderr)
        return EXIT_CONFIG
    except MesoError as exc:
        # --from-station lookup failed
        print("{}: {}".format(APP_NAME, exc), file=sys.stderr)
        return EXIT_FAILED

    try:
        return COMMANDS[args.command](settings, args)
    except ConfigError as exc:
        print("{}: {}".format(APP_NAME, exc), file=sys.stderr)
        return EXIT_CONFIG
    except (MesoError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.info("Cancelled by user.")
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
