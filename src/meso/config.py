#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Configuration for the dashboard.

Defaults point at Huntsville, AL (KHSV).  Everything can be overridden
with MESO_* environment variables, and the command line overrides those.
"""

import logging
import os

from .meso_classes import ConfigError, Location

APP_NAME = "meso"

DEFAULT_LATITUDE = 34.7382
DEFAULT_LONGITUDE = -86.6018
DEFAULT_STATION = "KHSV"
DEFAULT_CACHE_DIR = os.path.join("~", ".cache", "meso")
DEFAULT_CACHE_TTL = 900
DEFAULT_TIMEOUT = 10
DEFAULT_RETRIES = 3
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env(environ, name, default, convert=str):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        raise ConfigError("{} must be a {}, got {!r}".format(
            name, convert.__name__, raw)) from None


class Settings(object):
    """
    Everything a dashboard run needs to know.
    """

    def __init__(self, lat=DEFAULT_LATITUDE, lon=DEFAULT_LONGITUDE,
                 station=DEFAULT_STATION, cache_dir=DEFAULT_CACHE_DIR,
                 cache_ttl=DEFAULT_CACHE_TTL, timeout=DEFAULT_TIMEOUT,
                 retries=DEFAULT_RETRIES, log_level=DEFAULT_LOG_LEVEL):
        self.location = Location(lat, lon, station)
        self.cache_dir = os.path.expanduser(cache_dir)
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self.retries = retries
        self.log_level = log_level.upper()
        if self.cache_ttl < 0:
            raise ConfigError("cache ttl can't be negative")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.retries < 1:
            raise ConfigError("need at least one attempt per request")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError("unknown log level {!r}".format(log_level))

    @classmethod
    def from_env(cls, environ=None):
        """
        Settings from MESO_* variables, defaults for whatever isn't set.
        """
        if environ is None:
            environ = os.environ
        return cls(
            lat=_env(environ, "MESO_LATITUDE", DEFAULT_LATITUDE, float),
            lon=_env(environ, "MESO_LONGITUDE", DEFAULT_LONGITUDE, float),
            station=_env(environ, "MESO_STATION", DEFAULT_STATION),
            cache_dir=_env(environ, "MESO_CACHE_DIR", DEFAULT_CACHE_DIR),
            cache_ttl=_env(environ, "MESO_CACHE_TTL", DEFAULT_CACHE_TTL, int),
            timeout=_env(environ, "MESO_TIMEOUT", DEFAULT_TIMEOUT, float),
            retries=_env(environ, "MESO_RETRIES", DEFAULT_RETRIES, int),
            log_level=_env(environ, "MESO_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )

    def replace(self, lat=None, lon=None, station=None):
        """
        Copy with a different location.  Anything left as None is kept.
        """
        loc = self.location
        return Settings(
            lat=loc.lat if lat is None else lat,
            lon=loc.lon if lon is None else lon,
            station=loc.station if station is None else station,
            cache_dir=self.cache_dir, cache_ttl=self.cache_ttl,
            timeout=self.timeout, retries=self.retries,
            log_level=self.log_level,
        )

    def __repr__(self):
        return "Settings({!r}, cache_dir={!r})".format(self.location, self.cache_dir)
