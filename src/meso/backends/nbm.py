#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
This backend pulls the National Blend of Models (NBM) short-range text
bulletin (NBS) for a station from the MDL blend server and digs the daily
max/min temperature out of it.

An NBS bulletin is a fixed-width table, one row per element:

     KHSV    NBM V4.2 NBS GUIDANCE   10/19/2026  1200 UTC
     DT /OCT  19      /OCT  20                /OCT  21
     UTC  15 18 21 00 03 06 09 12 15 18 21 00 03 06 09 12
     TXN              82          56          84
     TMP  70 78 81 76 66 61 58 57 68 79 82 77 69 64 61 60

TXN alternates between the daytime max and the overnight min every 12
hours, which one comes first depends on the cycle.
"""

import logging
import re

from ..meso_classes import Daycast, ParseError, normalize_station
from .common import DEFAULT_TIMEOUT, DEFAULT_RETRIES, make_request

logger = logging.getLogger("meso.backends.nbm")

NBM_TEXT_URL = "https://blend.mdl.nws.noaa.gov/nbm-text-new"

ROW_LABEL_RE = re.compile(r"^[A-Z][A-Z0-9]{1,3}$")
ISSUED_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{2})(\d{2})\s+UTC")


def fetch_bulletin(station, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES):
    """
    Raw NBS bulletin text for the latest cycle.
    """
    params = {"ele": "NBS", "sta": normalize_station(station), "cyc": "Latest"}
    return make_request(NBM_TEXT_URL, params, timeout=timeout, retries=retries)


def parse_rows(text):
    """
    Splits a bulletin into {row label: [values...]}.  Only the first row
    with a given label is kept, a multi-station bulletin repeats them.
    """
    rows = {}
    for line in text.splitlines():
        parts = line.split()
        if not parts or not ROW_LABEL_RE.match(parts[0]):
            continue
        rows.setdefault(parts[0], parts[1:])
    return rows


def parse_issued(text):
    """
    The cycle time off the header line, as an ISO string, or None.
    """
    match = ISSUED_RE.search(text)
    if not match:
        return None
    month, day, year, hour, minute = match.groups()
    return "{}-{:02d}-{:02d}T{}:{}:00Z".format(year, int(month), int(day), hour, minute)


def parse_temps(text):
    """
    (high, low) from the TXN row.  The first two values are one max and one
    min in cycle-dependent order, so the bigger one is the high.
    """
    rows = parse_rows(text)
    txn = rows.get("TXN")
    if not txn or len(txn) < 2:
        raise ParseError("no TXN row with a max and min in bulletin")
    try:
        first, second = int(txn[0]), int(txn[1])
    except ValueError:
        raise ParseError("non-numeric TXN values {!r}".format(txn[:2])) from None
    return max(first, second), min(first, second)


def fetch_daycast(station, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES):
    """
    Today's NBM high and low for a station.
    """
    station = normalize_station(station)
    text = fetch_bulletin(station, timeout=timeout, retries=retries)
    high, low = parse_temps(text)
    logger.debug("NBM daycast for %s: high %d low %d", station, high, low)
    return Daycast(station, high, low, issued=parse_issued(text))
