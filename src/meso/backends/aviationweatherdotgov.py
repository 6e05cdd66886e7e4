#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
This backend facilitates fetching data from the NOAA NWS Aviation Weather
Center (AWC) data API.

Documentation can be found at https://aviationweather.gov/data/api/

We use it for two things: turning a station id into coordinates (so the
dashboard can be pointed at an airport instead of a lat/lon), and the
station's latest METAR for the current conditions panel.  The XML output
keeps the old text data server layout, which is what we parse.
"""

import functools
import logging
import xml.etree.ElementTree

from ..meso_classes import ParseError, PointMETAR, Station, normalize_station
from .common import DEFAULT_TIMEOUT, DEFAULT_RETRIES, make_request

logger = logging.getLogger("meso.backends.awc")

METAR_URL = "https://aviationweather.gov/api/data/metar"
STATION_URL = "https://aviationweather.gov/api/data/stationinfo"


def _parse_xml(xmldoc):
    try:
        tree = xml.etree.ElementTree.fromstring(xmldoc)
    except xml.etree.ElementTree.ParseError as exc:
        raise ParseError("AWC did not return XML: {}".format(exc)) from None
    data = tree.find('data')
    if data is None:
        raise ParseError("AWC response has no data section")
    return data


def _text(node, tag, convert=str):
    child = node.find(tag)
    if child is None or child.text is None:
        return None
    try:
        return convert(child.text)
    except ValueError:
        raise ParseError("bad {} value {!r}".format(tag, child.text)) from None


def parse_station(station_id, xmldoc):
    """
    Builds a Station out of a stationinfo response.
    """
    data = _parse_xml(xmldoc).find('Station')
    if data is None:
        raise ParseError("unknown station {}".format(station_id))

    site = Station(station_id)
    site.lat = _text(data, 'latitude', float)
    site.lon = _text(data, 'longitude', float)
    site.alt = _text(data, 'elevation_m', float)
    site.site = _text(data, 'site')
    site.country = _text(data, 'country')
    site.state = _text(data, 'state')
    if site.lat is None or site.lon is None:
        raise ParseError("station {} has no coordinates".format(station_id))
    return site


def get_station_coords(station_id, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES):
    """
    Determines the latitude, longitude, and altitude coordinates for a given
    station.  Stations don't move, so answers are kept for the life of the
    process, keyed on the normalized id so khsv and KHSV share one lookup.
    """
    return _station_coords(normalize_station(station_id), timeout, retries)


@functools.lru_cache(maxsize=32)
def _station_coords(station_id, timeout, retries):
    xmldoc = make_request(STATION_URL, {"ids": station_id, "format": "xml"},
                          timeout=timeout, retries=retries)
    site = parse_station(station_id, xmldoc)
    logger.info("station %s is %s at %s,%s", station_id, site.site, site.lat, site.lon)
    return site


def parse_metars(xmldoc):
    """
    All the raw METAR strings in a metar response, newest first.
    """
    data = _parse_xml(xmldoc)
    metar_strings = []
    for metar in data.findall('METAR'):
        raw = _text(metar, 'raw_text')
        if raw:
            metar_strings.append(raw)
    return metar_strings


def get_metars(station_id, hours_before_now=None, timeout=DEFAULT_TIMEOUT,
               retries=DEFAULT_RETRIES):
    """
    Gets METAR(s) for a specific station.  Returns as a list of strings.  If
    no METARs exist for the specified time period, the list will be empty.
    """
    params = {"ids": normalize_station(station_id), "format": "xml"}
    if hours_before_now:
        params["hours"] = hours_before_now
    xmldoc = make_request(METAR_URL, params, timeout=timeout, retries=retries)
    return parse_metars(xmldoc)


def get_current_metar(station_id, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES):
    """
    Latest observation for a station, decoded, or None when the station
    hasn't reported lately.
    """
    metars = get_metars(station_id, timeout=timeout, retries=retries)
    if not metars:
        logger.info("no recent METAR for %s", station_id)
        return None
    return PointMETAR(metars[0])
