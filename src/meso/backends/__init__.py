#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
One module per data source.  Each one knows how to fetch its product and
turn the payload into the classes in meso_classes.
"""
