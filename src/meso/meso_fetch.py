#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
This file is the very backend of the backend of this weather app.

It is responsible for asking every backend for its piece of the dashboard
and gluing the answers together.  Each panel is fetched on its own: if the
NBM server is down we still want the SPC risks, so a failed panel gets
logged and noted in Dashboard.errors instead of taking everything else
down with it.
"""

import datetime
import logging

from .backends import aviationweatherdotgov, nbm, spc
from .backends.common import download
from .meso_classes import MesoError

logger = logging.getLogger("meso.fetch")

PANELS = ("risk", "daycast", "current")


class Dashboard(object):
    """
    Everything shown for one location at one moment.  A panel that couldn't
    be fetched is None and has its reason in errors.
    """

    def __init__(self, location, generated=None, panels=PANELS):
        self.location = location
        self.panels = tuple(panels)
        self.generated = generated or datetime.datetime.now(datetime.timezone.utc)
        self.risks = None
        self.daycast = None
        self.metar = None
        self.outlook_images = spc.outlook_image_urls()
        self.climate_image = spc.CLIMATE_OUTLOOK_URL
        self.image_paths = {}
        self.errors = {}

    @property
    def categorical(self):
        if self.risks is None:
            return None
        return self.risks.get("categorical")

    def hazard(self, kind):
        """
        (probabilistic risk, significant risk) for tornado, wind or hail.
        Either can be None.
        """
        if self.risks is None:
            return None, None
        return self.risks.get(kind), self.risks.get("sig_" + kind)

    @property
    def all_failed(self):
        return bool(self.panels) and all(p in self.errors for p in self.panels)

    def as_dict(self):
        return {
            "location": self.location.as_dict(),
            "generated": self.generated.isoformat(),
            "risks": ({name: risk.as_dict() for name, risk in self.risks.items()}
                      if self.risks is not None else None),
            "daycast": self.daycast.as_dict() if self.daycast else None,
            "current": self.metar.as_dict() if self.metar else None,
            "outlook_images": dict(self.outlook_images),
            "climate_image": self.climate_image,
            "image_paths": dict(self.image_paths),
            "errors": dict(self.errors),
        }


def _panel(dashboard, name, func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except MesoError as exc:
        logger.error("%s panel unavailable: %s", name, exc)
        dashboard.errors[name] = str(exc)
        return None


def build_dashboard(settings, panels=PANELS):
    """
    Fetches every requested panel for settings.location.
    """
    loc = settings.location
    opts = {"timeout": settings.timeout, "retries": settings.retries}
    dashboard = Dashboard(loc, panels=panels)
    logger.info("building dashboard for %r", loc)

    if "risk" in panels:
        dashboard.risks = _panel(dashboard, "risk", spc.fetch_day1_risks,
                                 loc.lat, loc.lon, **opts)
    if "daycast" in panels:
        dashboard.daycast = _panel(dashboard, "daycast", nbm.fetch_daycast,
                                   loc.station, **opts)
    if "current" in panels:
        dashboard.metar = _panel(dashboard, "current",
                                 aviationweatherdotgov.get_current_metar,
                                 loc.station, **opts)
        if dashboard.metar is None and "current" not in dashboard.errors:
            dashboard.errors["current"] = "no recent observation from {}".format(loc.station)
    return dashboard


def download_images(dashboard, settings):
    """
    Pulls the outlook and climate maps into the cache directory.  Returns
    {name: path}, and also stashes it on the dashboard.
    """
    wanted = dict(dashboard.outlook_images)
    wanted["climate"] = dashboard.climate_image
    for name, url in wanted.items():
        try:
            dashboard.image_paths[name] = download(
                url, settings.cache_dir, settings.cache_ttl,
                timeout=settings.timeout, retries=settings.retries)
        except (MesoError, OSError) as exc:
            # OSError is the cache dir not being writable and the like
            logger.error("could not download %s map: %s", name, exc)
            dashboard.errors["image:" + name] = str(exc)
    return dict(dashboard.image_paths)


def resolve_station_location(settings):
    """
    Settings moved to the coordinates of settings' station.
    """
    site = aviationweatherdotgov.get_station_coords(
        settings.location.station, timeout=settings.timeout,
        retries=settings.retries)
    return settings.replace(lat=site.lat, lon=site.lon)
