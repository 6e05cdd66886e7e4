"""
Unit tests for the shared fetch helper: retry with exponential backoff and
the image download cache.
"""

import http.client
import os
import ssl
import time
import urllib.error
from unittest.mock import patch

import pytest

from meso.backends import common
from meso.meso_classes import FetchError


def http_error(code):
    return urllib.error.HTTPError("https://example.invalid", code, "status", {}, None)


@pytest.fixture
def sleeps():
    with patch("meso.backends.common.time.sleep") as sleep:
        yield sleep


class TestBuildUrl:

    def test_no_params(self):
        assert common.build_url("https://a/b") == "https://a/b"

    def test_commas_kept(self):
        url = common.build_url("https://a/q", {"geometry": "-86.6,34.7", "f": "json"})
        assert url == "https://a/q?geometry=-86.6,34.7&f=json"

    def test_existing_query(self):
        assert common.build_url("https://a/q?x=1", {"y": 2}) == "https://a/q?x=1&y=2"


class TestRetry:
    """Test exponential backoff on transient failures"""

    def test_success_first_try(self, sleeps):
        with patch("meso.backends.common._fetch_once", return_value=b"ok") as fetch:
            assert common.make_request("https://a") == "ok"
        assert fetch.call_count == 1
        sleeps.assert_not_called()

    def test_retry_on_transient_failure(self, sleeps):
        effects = [urllib.error.URLError("connection refused"), http_error(503), b"ok"]
        with patch("meso.backends.common._fetch_once", side_effect=effects) as fetch:
            assert common.make_request("https://a", retries=3, backoff=0.5) == "ok"
        assert fetch.call_count == 3
        assert [c[0][0] for c in sleeps.call_args_list] == [0.5, 1.0]

    def test_gives_up(self, sleeps):
        with patch("meso.backends.common._fetch_once",
                   side_effect=TimeoutError("timed out")) as fetch:
            with pytest.raises(FetchError) as info:
                common.make_request("https://a", retries=3)
        assert fetch.call_count == 3
        assert "timed out" in str(info.value)
        assert sleeps.call_count == 2

    def test_client_error_not_retried(self, sleeps):
        with patch("meso.backends.common._fetch_once",
                   side_effect=http_error(404)) as fetch:
            with pytest.raises(FetchError, match="404"):
                common.make_request("https://a", retries=5)
        assert fetch.call_count == 1
        sleeps.assert_not_called()

    def test_rate_limit_retried(self, sleeps):
        with patch("meso.backends.common._fetch_once",
                   side_effect=[http_error(429), b"ok"]):
            assert common.make_request("https://a") == "ok"

    def test_backoff_capped(self, sleeps):
        with patch("meso.backends.common._fetch_once",
                   side_effect=ConnectionError("reset")):
            with pytest.raises(FetchError):
                common.make_request("https://a", retries=6, backoff=2)
        assert max(c[0][0] for c in sleeps.call_args_list) == common.MAX_BACKOFF

    def test_error_carries_full_url(self, sleeps):
        with patch("meso.backends.common._fetch_once", side_effect=http_error(400)):
            with pytest.raises(FetchError) as info:
                common.make_request("https://a/q", {"f": "json"}, retries=1)
        assert info.value.url == "https://a/q?f=json"

    def test_truncated_body_retried(self, sleeps):
        effects = [http.client.IncompleteRead(b"partial"), b"ok"]
        with patch("meso.backends.common._fetch_once", side_effect=effects) as fetch:
            assert common.make_request("https://a", retries=2) == "ok"
        assert fetch.call_count == 2
        assert sleeps.call_count == 1

    @pytest.mark.parametrize("exc", [
        http.client.IncompleteRead(b"partial"),
        http.client.RemoteDisconnected("closed"),
        ssl.SSLError("bad record mac"),
        TimeoutError("read timed out"),
    ])
    def test_read_failures_become_fetch_errors(self, sleeps, exc):
        with patch("meso.backends.common._fetch_once", side_effect=exc) as fetch:
            with pytest.raises(FetchError) as info:
                common.make_request("https://a", retries=2)
        assert fetch.call_count == 2
        assert info.value.url == "https://a"


class TestDownload:
    """Test the image cache"""

    URL = "https://www.spc.noaa.gov/products/outlook/day1otlk.gif"

    def test_downloads_into_cache(self, tmp_path):
        with patch("meso.backends.common.fetch_bytes", return_value=b"GIF89a") as fetch:
            path = common.download(self.URL, str(tmp_path / "c"), ttl=60)
        assert path == str(tmp_path / "c" / "day1otlk.gif")
        with open(path, "rb") as fh:
            assert fh.read() == b"GIF89a"
        assert fetch.call_count == 1
        assert not os.path.exists(path + ".part")

    def test_fresh_copy_reused(self, tmp_path):
        with patch("meso.backends.common.fetch_bytes", return_value=b"GIF89a") as fetch:
            common.download(self.URL, str(tmp_path), ttl=60)
            common.download(self.URL, str(tmp_path), ttl=60)
        assert fetch.call_count == 1

    def test_stale_copy_refetched(self, tmp_path):
        with patch("meso.backends.common.fetch_bytes", side_effect=[b"old", b"new"]):
            path = common.download(self.URL, str(tmp_path), ttl=60)
            hour_ago = time.time() - 3600
            os.utime(path, (hour_ago, hour_ago))
            common.download(self.URL, str(tmp_path), ttl=60)
        with open(path, "rb") as fh:
            assert fh.read() == b"new"

    def test_failed_fetch_leaves_no_file(self, tmp_path):
        with patch("meso.backends.common.fetch_bytes",
                   side_effect=FetchError(self.URL, "HTTP 500")):
            with pytest.raises(FetchError):
                common.download(self.URL, str(tmp_path), ttl=60)
        assert os.listdir(str(tmp_path)) == []
