#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Turns a Dashboard into something to look at: a plain text report laid out
like the old dashboard window, or JSON for feeding other tools.
"""

import json

from .meso_classes import conv_c_to_f

WIDTH = 60
PLACEHOLDER = "-"

HAZARDS = ("tornado", "wind", "hail")


def _section(title):
    return ["", title.upper(), "-" * WIDTH]


def _risk_text(risk):
    if risk is None:
        return "None"
    return risk.label


def _hazard_text(prob, sig):
    text = _risk_text(prob)
    if sig is not None and sig.dn:
        text += " (SIG)"
    return text


def _wind_text(metar):
    if metar.windspd is None:
        return "missing"
    if metar.windspd == 0:
        return "calm"
    if metar.winddir == 'VRB':
        text = "variable at {} kt".format(metar.windspd)
    else:
        text = "{:03d} at {} kt".format(metar.winddir, metar.windspd)
    if metar.windgust:
        text += ", gusting {} kt".format(metar.windgust)
    return text


def _vis_text(vis):
    if vis is None:
        return "missing"
    if vis == int(vis):
        return "{} sm".format(int(vis))
    return "{:.2f} sm".format(vis)


def current_lines(metar):
    """
    Current conditions block, one line per item.
    """
    lines = ["Observed: {} ({})".format(
        metar.timestamp.strftime("%Y-%m-%d %H:%MZ"), metar.loc_code)]
    if metar.temp is not None:
        temp = "Temperature: {}°F ({}°C)".format(round(conv_c_to_f(metar.temp)), metar.temp)
        if metar.dewpt is not None:
            temp += ", dewpoint {}°F".format(round(conv_c_to_f(metar.dewpt)))
        lines.append(temp)
    lines.append("Wind: " + _wind_text(metar))
    lines.append("Visibility: " + _vis_text(metar.vis))
    lines.append("Sky: " + (", ".join(metar.clouds) if metar.clouds else "clear"))
    lines.append("Weather: " + (metar.weather or "nothing!"))
    if metar.press is not None:
        lines.append("Altimeter: {:.2f} inHg".format(metar.press))
    if metar.is_severe:
        lines.append("!! severe weather reported")
    return lines


def render_text(dashboard):
    """
    The dashboard as a text report.
    """
    loc = dashboard.location
    report = [
        "=" * WIDTH,
        "MESO | Weather Dashboard",
        "Location: {:.4f}, {:.4f} (station {})".format(loc.lat, loc.lon, loc.station),
        "Generated: {}".format(dashboard.generated.strftime("%Y-%m-%d %H:%M UTC")),
        "=" * WIDTH,
    ]

    report += _section("Daycast")
    if dashboard.daycast:
        report.append("High: {}°F".format(dashboard.daycast.high))
        report.append("Low:  {}°F".format(dashboard.daycast.low))
    else:
        report.append("High: " + PLACEHOLDER)
        report.append("Low:  " + PLACEHOLDER)

    report += _section("Day 1 Categorical Outlook")
    cat = dashboard.categorical
    if cat is None:
        report.append("None")
    else:
        report.append("{} ({})".format(cat.label, cat.description))

    report += _section("Risks by Type")
    for kind in HAZARDS:
        prob, sig = dashboard.hazard(kind)
        report.append("{:<10}{}".format(kind.title(), _hazard_text(prob, sig)))

    report += _section("Current Conditions")
    if dashboard.metar:
        report += current_lines(dashboard.metar)
    else:
        report.append(PLACEHOLDER)

    report += _section("SPC Outlook Map")
    for kind, url in dashboard.outlook_images.items():
        line = "{:<13}{}".format(kind.title(), url)
        if kind in dashboard.image_paths:
            line += "\n{:<13}{}".format("", dashboard.image_paths[kind])
        report.append(line)

    report += _section("6-10 Day Climate Outlook")
    report.append(dashboard.climate_image)
    if "climate" in dashboard.image_paths:
        report.append(dashboard.image_paths["climate"])

    if dashboard.errors:
        report += _section("Unavailable")
        for panel, reason in sorted(dashboard.errors.items()):
            report.append("{}: {}".format(panel, reason))

    report.append("")
    return "\n".join(report)


def render_json(dashboard):
    """
    The dashboard as a JSON document.
    """
    return json.dumps(dashboard.as_dict(), indent=2, ensure_ascii=False)


RENDERERS = {
    "txt": render_text,
    "json": render_json,
}
