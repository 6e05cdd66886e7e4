#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
This backend asks the NOAA ArcGIS map server what the Storm Prediction
Center's Day 1 convective outlook says about a single point.

The SPC_wx_outlks MapServer has one layer per outlook product.  We do a
point-in-polygon query against a layer and read the `dn` attribute off
whatever polygons come back.  Documentation for the query endpoint is at
https://developers.arcgis.com/rest/services-reference/enterprise/query-map-service-layer-.htm
"""

import json
import logging

from ..meso_classes import (OUTLOOK_IMAGE_KINDS, ParseError, Risk, layer_id,
                            outlook_image_url)
from .common import DEFAULT_TIMEOUT, DEFAULT_RETRIES, make_request

logger = logging.getLogger("meso.backends.spc")

ARCGIS_BASE_URL = "https://mapservices.weather.noaa.gov/vector/rest/services/outlooks/SPC_wx_outlks/MapServer/"

CLIMATE_OUTLOOK_URL = "https://www.cpc.ncep.noaa.gov/products/predictions/610day/610temp.new.gif"

# order the dashboard asks for them in
DAY1_LAYERS = ("categorical", "tornado", "wind", "hail",
               "sig_tornado", "sig_wind", "sig_hail")


def query_params(lat, lon):
    """
    Point query arguments.  ArcGIS wants x,y, so longitude goes first.
    """
    return {
        "f": "json",
        "geometry": "{},{}".format(lon, lat),
        "geometryType": "esriGeometryPoint",
        "inSR": 4326,
        "spatialRel": "esriSpatialRelIntersects",
        "outFields": "*",
        "returnGeometry": "false",
    }


def parse_dn(payload):
    """
    Pulls the risk out of a query response.  No polygons means no risk.
    Polygons nest (MRGL sits inside TSTM, 15% inside 5%), so when a point
    hits several the biggest dn is the one that matters.
    """
    try:
        doc = json.loads(payload)
    except ValueError as exc:
        raise ParseError("map server did not return json: {}".format(exc)) from None
    if not isinstance(doc, dict):
        raise ParseError("unexpected map server response: {!r}".format(doc))
    if "error" in doc:
        err = doc["error"]
        if isinstance(err, dict):
            raise ParseError("map server error {}: {}".format(
                err.get("code"), err.get("message")))
        raise ParseError("map server error: {!r}".format(err))
    features = doc.get("features")
    if not isinstance(features, list):
        raise ParseError("map server response has no features list")

    values = []
    for feature in features:
        if not isinstance(feature, dict):
            raise ParseError("unexpected feature {!r}".format(feature))
        attrs = feature.get("attributes") or {}
        if not isinstance(attrs, dict):
            raise ParseError("unexpected attributes {!r}".format(attrs))
        # field name case isn't consistent between layers
        dn = attrs.get("dn", attrs.get("DN"))
        if dn is None:
            continue
        try:
            values.append(int(dn))
        except (TypeError, ValueError):
            raise ParseError("non-numeric dn {!r}".format(dn)) from None
    return max(values) if values else 0


def fetch_risk(layer, lat, lon, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES):
    """
    Risk for one outlook layer (by name, see OUTLOOK_LAYERS) at lat/lon.
    """
    url = "{}{}/query".format(ARCGIS_BASE_URL, layer_id(layer))
    payload = make_request(url, query_params(lat, lon), timeout=timeout,
                           retries=retries)
    risk = Risk(layer, parse_dn(payload))
    logger.debug("%s risk at %s,%s is %s", layer, lat, lon, risk.label)
    return risk


def fetch_day1_risks(lat, lon, layers=DAY1_LAYERS, timeout=DEFAULT_TIMEOUT,
                     retries=DEFAULT_RETRIES):
    """
    Every Day 1 layer the dashboard shows, as {name: Risk}.
    """
    return {name: fetch_risk(name, lat, lon, timeout=timeout, retries=retries)
            for name in layers}


def outlook_image_urls():
    """
    {kind: url} for the four Day 1 outlook maps.
    """
    return {kind: outlook_image_url(kind) for kind in OUTLOOK_IMAGE_KINDS}
