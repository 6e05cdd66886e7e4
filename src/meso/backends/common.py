#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Plumbing shared by all the backends: one way to curl a URL (with retries,
since the NOAA servers like to hiccup), and a tiny on-disk cache for the
image products so we aren't pulling the same gif every refresh.
"""

import http.client
import logging
import os
import time
import urllib.error
import urllib.parse
import urllib.request

from .. import __version__
from ..meso_classes import FetchError

logger = logging.getLogger("meso.backends")

USER_AGENT = "meso/{} (weather dashboard)".format(__version__)

DEFAULT_TIMEOUT = 10
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF = 0.5
MAX_BACKOFF = 8.0

# worth another try, everything else in the 4xx range is our fault
RETRY_STATUSES = {408, 429, 500, 502, 503, 504}


def build_url(url, params=None):
    """
    Tacks an urlencoded query string on to url.  Commas are left alone so
    ArcGIS geometries stay readable in the logs.
    """
    if not params:
        return url
    query = urllib.parse.urlencode(params, safe=',')
    joiner = '&' if '?' in url else '?'
    return url + joiner + query


def _fetch_once(url, timeout):
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return resp.read()


def fetch_bytes(url, params=None, timeout=DEFAULT_TIMEOUT,
                retries=DEFAULT_RETRIES, backoff=DEFAULT_BACKOFF):
    """
    Equivalent to curl'ing the URL and reading the results, except it tries
    again (waiting backoff, 2*backoff, 4*backoff... seconds) when the
    failure looks temporary.  Gives up with a FetchError.
    """
    full_url = build_url(url, params)
    attempts = max(1, retries)
    reason = None
    for attempt in range(attempts):
        try:
            logger.debug("GET %s (attempt %d/%d)", full_url, attempt + 1, attempts)
            return _fetch_once(full_url, timeout)
        except urllib.error.HTTPError as exc:
            reason = "HTTP {} {}".format(exc.code, exc.reason)
            if exc.code not in RETRY_STATUSES:
                raise FetchError(full_url, reason) from exc
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            # OSError covers timeouts, resets and SSL failures mid-read
            reason = getattr(exc, 'reason', None) or str(exc) or type(exc).__name__
        if attempt + 1 < attempts:
            delay = min(backoff * (2 ** attempt), MAX_BACKOFF)
            logger.warning("fetching %s failed (%s), retrying in %.1fs",
                           full_url, reason, delay)
            time.sleep(delay)
    raise FetchError(full_url, reason)


def make_request(url, params=None, timeout=DEFAULT_TIMEOUT,
                 retries=DEFAULT_RETRIES, backoff=DEFAULT_BACKOFF):
    """
    Same as fetch_bytes but hands back text.  NOAA serves utf-8 (or plain
    ascii, which is the same thing).
    """
    data = fetch_bytes(url, params, timeout=timeout, retries=retries,
                       backoff=backoff)
    return data.decode('utf-8', errors='replace')


def cache_path(url, cache_dir):
    """
    Where a download of url lives in the cache.  The basename is enough,
    every product we grab has a distinct file name.
    """
    name = os.path.basename(urllib.parse.urlparse(url).path) or "index"
    return os.path.join(cache_dir, name)


def download(url, cache_dir, ttl, timeout=DEFAULT_TIMEOUT,
             retries=DEFAULT_RETRIES):
    """
    Saves url into cache_dir and returns the path.  If we already have a
    copy younger than ttl seconds, that one is returned instead.
    """
    path = cache_path(url, cache_dir)
    try:
        age = time.time() - os.path.getmtime(path)
    except OSError:
        age = None
    if age is not None and age < ttl:
        logger.debug("cache hit for %s (%.0fs old)", url, age)
        return path

    data = fetch_bytes(url, timeout=timeout, retries=retries)
    os.makedirs(cache_dir, exist_ok=True)
    # write beside and rename, a reader never sees half a gif
    tmp = path + ".part"
    with open(tmp, 'wb') as fh:
        fh.write(data)
    os.replace(tmp, path)
    logger.info("downloaded %s to %s", url, path)
    return path
