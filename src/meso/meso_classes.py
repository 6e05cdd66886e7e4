#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
This file defines the basic classes and data structures for the products
the dashboard shows: SPC outlook risks, the NBM daycast, stations, and
decoded METARs for current conditions.

Nothing in here touches the network.  The backends fetch, these classes
hold (and in the METAR's case, parse) what came back.
"""

import datetime
import re


class MesoError(Exception):
    """
    Base class for everything this package raises on purpose.
    """


class FetchError(MesoError):
    """
    A product could not be downloaded, even after retrying.
    """

    def __init__(self, url, reason):
        self.url = url
        self.reason = reason
        super().__init__("failed to fetch {}: {}".format(url, reason))


class ParseError(MesoError):
    """
    A product was downloaded, but it isn't shaped like it should be.
    """


class ConfigError(MesoError):
    """
    Bad location, station, or product name.
    """


SPC_OUTLOOK_IMAGE_BASE = "https://www.spc.noaa.gov/products/outlook/"

# format is
# "name": (arcgis layer id, kind, outlook image)
# kind is one of categorical, probabilistic, significant.  only the four
# layers that get drawn on the dashboard have an image.
OUTLOOK_LAYERS = {
    "categorical": (1, "categorical", "day1otlk.gif"),
    "sig_tornado": (2, "significant", None),
    "tornado": (3, "probabilistic", "day1probotlk_torn.gif"),
    "sig_hail": (4, "significant", None),
    "hail": (5, "probabilistic", "day1probotlk_hail.gif"),
    "sig_wind": (6, "significant", None),
    "wind": (7, "probabilistic", "day1probotlk_wind.gif"),
}

# the ones with a picture, in the order the buttons were laid out
OUTLOOK_IMAGE_KINDS = ("categorical", "tornado", "wind", "hail")

# format is
# dn: ("abbreviation", "name")
# dn 1 and 7 aren't used by SPC
CATEGORICAL_RISKS = {
    0: ("NONE", "no thunderstorms"),
    2: ("TSTM", "general thunderstorms"),
    3: ("MRGL", "marginal"),
    4: ("SLGT", "slight"),
    5: ("ENH", "enhanced"),
    6: ("MDT", "moderate"),
    8: ("HIGH", "high"),
}


def layer_id(name):
    """
    ArcGIS layer id for an outlook layer name.
    """
    try:
        return OUTLOOK_LAYERS[name][0]
    except KeyError:
        raise ConfigError("unknown outlook layer {!r}, expected one of {}".format(
            name, ", ".join(sorted(OUTLOOK_LAYERS)))) from None


def outlook_image_url(kind):
    """
    Where SPC keeps the current Day 1 map for the given kind.
    """
    if kind not in OUTLOOK_IMAGE_KINDS:
        raise ConfigError("no outlook image for {!r}, expected one of {}".format(
            kind, ", ".join(OUTLOOK_IMAGE_KINDS)))
    return SPC_OUTLOOK_IMAGE_BASE + OUTLOOK_LAYERS[kind][2]


def conv_f_to_c(deg_f):
    """
    Fahrenheit to celsius conversion.
    """
    return (deg_f - 32) * 5.0/9.0


def conv_c_to_f(deg_c):
    """
    Celsius to fahrenheit conversion.
    """
    return (deg_c * 9.0/5.0) + 32


class Risk(object):
    """
    One outlook layer's value at a point.

    dn is the raw attribute ArcGIS hands back.  For the categorical layer
    it's a code from CATEGORICAL_RISKS, for the probabilistic ones it's a
    percentage, and for the significant ones anything nonzero means the
    point is inside the hatched area.
    """

    def __init__(self, layer, dn):
        if layer not in OUTLOOK_LAYERS:
            raise ConfigError("unknown outlook layer {!r}".format(layer))
        self.layer = layer
        self.dn = int(dn)

    @property
    def kind(self):
        return OUTLOOK_LAYERS[self.layer][1]

    @property
    def label(self):
        if self.kind == "categorical":
            try:
                return CATEGORICAL_RISKS[self.dn][0]
            except KeyError:
                # SPC added a category we don't know, show what we got
                return str(self.dn)
        if self.kind == "significant":
            return "SIG" if self.dn else "NONE"
        return "{}%".format(self.dn)

    @property
    def description(self):
        if self.kind == "categorical":
            return CATEGORICAL_RISKS.get(self.dn, (None, "unknown"))[1]
        if self.kind == "significant":
            if self.dn:
                return "significant severe area"
            return "outside significant severe area"
        return "{}% probability within 25 miles".format(self.dn)

    def as_dict(self):
        return {
            "layer": self.layer,
            "dn": self.dn,
            "label": self.label,
            "description": self.description,
        }

    def __eq__(self, other):
        if not isinstance(other, Risk):
            return NotImplemented
        return (self.layer, self.dn) == (other.layer, other.dn)

    def __repr__(self):
        return "Risk({!r}, {})".format(self.layer, self.dn)


class Daycast(object):
    """
    Forecast high and low from the NBM, degrees fahrenheit.
    """

    def __init__(self, station, high, low, issued=None):
        self.station = station
        self.high = high
        self.low = low
        self.issued = issued

    def as_dict(self):
        return {
            "station": self.station,
            "high_f": self.high,
            "low_f": self.low,
            "high_c": round(conv_f_to_c(self.high), 1),
            "low_c": round(conv_f_to_c(self.low), 1),
            "issued": self.issued,
        }


STATION_RE = re.compile("^[A-Z0-9]{3,4}$")


def normalize_station(station_id):
    """
    Upper-cases and sanity checks a station id.  KHSV, khsv, and ' KHSV '
    all come out the same.
    """
    if station_id is None:
        raise ConfigError("no station given")
    station_id = station_id.strip().upper()
    if not STATION_RE.match(station_id):
        raise ConfigError("bad station id {!r}".format(station_id))
    return station_id


class Location(object):
    """
    Where the dashboard is looking.  Point products (SPC risks) use the
    coordinates, station products (NBM, METAR) use the station.
    """

    def __init__(self, lat, lon, station):
        try:
            self.lat = float(lat)
            self.lon = float(lon)
        except (TypeError, ValueError):
            raise ConfigError("coordinates must be numbers, got {!r}, {!r}".format(
                lat, lon)) from None
        if not -90 <= self.lat <= 90:
            raise ConfigError("latitude {} out of range".format(self.lat))
        if not -180 <= self.lon <= 180:
            raise ConfigError("longitude {} out of range".format(self.lon))
        self.station = normalize_station(station)

    def as_dict(self):
        return {"lat": self.lat, "lon": self.lon, "station": self.station}

    def __repr__(self):
        return "Location({}, {}, {!r})".format(self.lat, self.lon, self.station)


class Station(object):
    """
    Data structure for returning information about a station.
    """

    def __init__(self, station_id):
        self.station_id = station_id
        self.lat = None
        self.lon = None
        self.alt = None
        self.country = None
        self.state = None
        self.site = None

    def as_dict(self):
        return {
            "station": self.station_id,
            "site": self.site,
            "state": self.state,
            "country": self.country,
            "lat": self.lat,
            "lon": self.lon,
            "elevation_m": self.alt,
        }


# format is:
# "metar code": (name, is_severe)
METAR_WXCODES = {
        "BR": ("mist", False),
        "DS": ("dust storm", True),
        "DU": ("widespread dust", False),
        "DZ": ("drizzle", False),
        "FG": ("fog", False),
        "FC": ("funnel cloud", True),
        "FU": ("smoke", False),
        "GR": ("hail", True),
        "GS": ("small hail", False),
        "HZ": ("haze", False),
        "IC": ("ice crystals", False),
        "PL": ("ice pellets", False),
        "PO": ("dust devils", True),
        "RA": ("rain", False),
        "SA": ("sand", False),
        "SG": ("snow grains", False),
        "SN": ("snow", False),
        "SQ": ("squall", True),
        "SS": ("sandstorm", True),
        "VA": ("volcanic ash", True),
        "UP": ("unidentified precip", False)
}

# format is
# "metar code": ("name", order)
# higher order goes first.  weather codes themselves sit at order 0, in the
# order they were reported
METAR_WXMODS = {
    "+": ("heavy", 100),
    "-": ("light", 100),
    "RE": ("recent", 8),
    "FZ": ("freezing", 6),
    "BL": ("blowing", 5),
    "DR": ("low drifting", 4),
    "MI": ("shallow", 3),
    "PR": ("partial", 3),
    "SH": ("showers of", 2),
    "TS": ("thunderstorm with", 1),
    "BC": ("patches of", 3),
    "VC": ("in vicinity", -6),
}

# format is
# "cover": "name"
# clear sky codes (SKC, CLR, NSC, NCD) never get this far, see parse_ceil
CLOUDS = {
    "FEW": "few",
    "SCT": "scattered",
    "BKN": "broken",
    "OVC": "overcast",
    "VV": "vertical visibility",
}

CLOUD_SUFFIXES = {
    "CB": "cumulonimbus",
    "TCU": "towering cumulus",
}

TIMESTAMP_RE = re.compile(r"^(\d{2})(\d{2})(\d{2})Z$")
WIND_RE = re.compile(r"^(\d{3}|VRB)(\d{2,3})(?:G(\d{2,3}))?(KT|MPS)$")
VIS_RE = re.compile(r"^(P|M)?(\d+|\d+/\d+)SM$")
CLOUD_RE = re.compile(r"^(FEW|SCT|BKN|OVC|VV)(\d{3}|///)(CB|TCU)?$")
TEMP_RE = re.compile(r"^(M?\d{2})/(M?\d{2})?$")
ALTIM_RE = re.compile(r"^([AQ])(\d{4})$")
WX_RE = re.compile(
    r"^(\+|-|VC)?(RE)?((?:MI|PR|BC|DR|BL|SH|TS|FZ)*)"
    r"((?:DZ|RA|SN|SG|IC|PL|GR|GS|UP|BR|FG|FU|VA|DU|SA|HZ|PO|SQ|FC|SS|DS)*)$")


def _metar_temp(group):
    if group.startswith('M'):
        return -int(group[1:])
    return int(group)


class PointMETAR(object):
    """
    Basic representation of a METAR.
    Stores location, date, time, etc etc.
    """

    def __init__(self, metar_string, now=None):
        """
        Handles setup and parsing of a metar string into more useful, unpacked
        data.  `now` anchors the day-of-month timestamp to a real date and
        defaults to the current UTC time.
        """
        self.metar_string = metar_string.strip()
        self.now = now or datetime.datetime.now(datetime.timezone.utc)
        self.temp = None
        self.dewpt = None
        self.windspd = None
        self.winddir = None
        self.windgust = None
        self.clouds = []
        self.vis = None
        self.press = None
        self.auto = None
        self.loc_code = None
        self.timestamp = None
        self.weather = None
        self.remarks = []
        self.parse()

    def parse(self):
        """
        The meat of the METAR parser lives here.
        """
        parts = self.metar_string.split()
        if parts and parts[0] in ("METAR", "SPECI"):
            parts = parts[1:]
        if len(parts) < 2:
            raise ParseError("not a METAR: {!r}".format(self.metar_string))

        # a few metar examples:
        # KGFK 262353Z 24011KT 10SM BKN100 BKN120 BKN140 20/03 A2945 RMK AO2
        #  PK WND 24026/2324 SLP972 T02000033 10250 20200 51009
        # KHSV 121553Z VRB04KT 1 1/2SM -TSRA BR OVC008CB 18/17 A2990

        # the easy parts:
        self.loc_code = parts[0]
        if 'RMK' in parts:
            idx = parts.index('RMK')
            self.remarks = parts[idx + 1:]
            parts = parts[:idx]
        self.auto = 'AUTO' in parts
        body = parts[1:]

        self.parse_timestamp(body)
        self.parse_wind(body)
        self.parse_temps(body)
        self.parse_press(body)
        self.parse_cav(body)

    def parse_timestamp(self, parts):
        """
        Timestamps are always DDHHMMZ, day of the current month.  If that
        day hasn't happened yet this month it was last month's.
        """
        for part in parts:
            match = TIMESTAMP_RE.match(part)
            if match:
                break
        else:
            raise ParseError("no timestamp in METAR {!r}".format(self.metar_string))
        day, hour, minute = (int(g) for g in match.groups())
        year, month = self.now.year, self.now.month
        if day > self.now.day:
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        try:
            self.timestamp = datetime.datetime(year, month, day, hour, minute,
                                               tzinfo=datetime.timezone.utc)
        except ValueError as exc:
            raise ParseError("bad METAR timestamp {!r}: {}".format(part, exc)) from None

    def parse_wind(self, parts):
        """
        Wind, accounts for gusts too.  Speeds are kept in knots.
        """
        self.windgust = 0
        for part in parts:
            match = WIND_RE.match(part)
            if match:
                break
        else:
            # no wind group at all, some AUTO stations do that when the
            # sensor is out
            return
        direction, speed, gust, unit = match.groups()
        self.winddir = direction if direction == 'VRB' else int(direction)
        self.windspd = int(speed)
        if gust:
            self.windgust = int(gust)
        if unit == 'MPS':
            self.windspd = round(self.windspd * 1.94384)
            self.windgust = round(self.windgust * 1.94384)

    def parse_temps(self, parts):
        for part in parts:
            match = TEMP_RE.match(part)
            if match:
                left, right = match.groups()
                self.temp = _metar_temp(left)
                if right:
                    self.dewpt = _metar_temp(right)
                return

    def parse_press(self, parts):
        """
        Altimeter setting, always in inches of mercury on the way out.
        """
        for part in parts:
            match = ALTIM_RE.match(part)
            if match:
                unit, value = match.groups()
                if unit == 'A':
                    self.press = int(value) / 100.0
                else:
                    self.press = round(int(value) * 0.02953, 2)
                return

    def parse_cav(self, parts):
        """
        Sub-parser for dealing with ceiling, visibility, and weather groups.
        This is easier to make separate because of the CAVOK term, which can
        eliminate all three groups in one shot.
        """

        if "CAVOK" in parts:
            self.clouds = []
            self.vis = 10
            self.weather = ""
            return

        self.parse_ceil(parts)
        self.parse_vis(parts)
        self.parse_wx(parts)

    def parse_ceil(self, parts):
        """
        Cloud layers, lowest first the way they're reported.
        """
        self.clouds = []
        for part in parts:
            if part in ("SKC", "CLR", "NSC", "NCD"):
                return
            match = CLOUD_RE.match(part)
            if not match:
                continue
            cover, alt, suffix = match.groups()
            text = CLOUDS[cover]
            if alt != '///':
                text += " at {}".format(int(alt) * 100)
            if suffix:
                text += " ({})".format(CLOUD_SUFFIXES[suffix])
            self.clouds.append(text)

    def parse_vis(self, parts):
        """
        Sub-sub-parser for visibility.  Whole miles can be a separate group
        in front of the fraction: 1 1/2SM.
        """
        for i, part in enumerate(parts):
            match = VIS_RE.match(part)
            if match:
                break
        else:
            return
        _, amount = match.groups()
        if '/' in amount:
            a, b = amount.split('/')
            vis = float(a) / float(b)
            if i > 0 and parts[i - 1].isdigit() and len(parts[i - 1]) == 1:
                vis += int(parts[i - 1])
        else:
            vis = int(amount)
        self.vis = vis

    def parse_wx(self, parts):
        """
        Sub-sub-parser for the weather codes.  There can be more than one
        group, e.g. -TSRA BR, each gets translated on its own.
        """
        groups = []
        for part in parts:
            match = WX_RE.match(part)
            if not match or not (match.group(3) or match.group(4)):
                continue
            groups.append(self._describe_wx(match))
        if not groups:
            self.weather = "nothing!"
            return
        self.weather = ", ".join(groups)

    @staticmethod
    def _describe_wx(match):
        intensity, recent, descriptors, phenomena = match.groups()
        modifiers = []
        if intensity:
            modifiers.append(intensity)
        if recent:
            modifiers.append(recent)
        modifiers.extend(descriptors[i:i + 2] for i in range(0, len(descriptors), 2))
        codes = [phenomena[i:i + 2] for i in range(0, len(phenomena), 2)]

        # sort modifiers so they read like english, then drop the weather
        # in right where the order-0 slot falls
        modifiers.sort(key=lambda m: -METAR_WXMODS[m][1])
        output = []
        placed = False
        for mod in modifiers:
            if not placed and METAR_WXMODS[mod][1] < 0:
                output.extend(METAR_WXCODES[c][0] for c in codes)
                placed = True
            output.append(METAR_WXMODS[mod][0])
        if not placed:
            output.extend(METAR_WXCODES[c][0] for c in codes)
        text = " ".join(output)
        # a bare TS or SH has nothing to be "with"/"of"
        if not codes:
            text = text.replace("thunderstorm with", "thunderstorm")
            text = text.replace("showers of", "showers")
        return text

    @property
    def is_severe(self):
        """
        True if any reported weather is one of the nasty ones.
        """
        if not self.weather:
            return False
        severe = [name for name, bad in METAR_WXCODES.values() if bad]
        return "thunderstorm" in self.weather or any(s in self.weather for s in severe)

    def as_dict(self):
        return {
            "station": self.loc_code,
            "raw": self.metar_string,
            "time": self.timestamp.isoformat() if self.timestamp else None,
            "temp_c": self.temp,
            "dewpoint_c": self.dewpt,
            "temp_f": round(conv_c_to_f(self.temp)) if self.temp is not None else None,
            "wind_dir": self.winddir,
            "wind_kt": self.windspd,
            "gust_kt": self.windgust,
            "visibility_sm": self.vis,
            "clouds": list(self.clouds),
            "weather": self.weather,
            "altimeter_inhg": self.press,
            "auto": self.auto,
        }
