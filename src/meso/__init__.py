#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Meso: a weather dashboard for one spot on the map.

Pulls the SPC Day 1 convective outlook at a point, the NBM daycast and
the latest METAR for a station, and links the SPC and CPC outlook maps.
"""

__version__ = "0.1.0"
