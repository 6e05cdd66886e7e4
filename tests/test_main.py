"""
Tests for the command line entry point.  Backends are mocked, nothing
touches the network.
"""

import json
from unittest.mock import patch

import pytest

from meso import main as cli
from meso.meso_classes import Daycast, FetchError, Location, Risk, Station
from meso.meso_fetch import Dashboard


@pytest.fixture
def dashboard(now):
    dash = Dashboard(Location(34.7382, -86.6018, "KHSV"), generated=now)
    dash.risks = {"categorical": Risk("categorical", 3), "tornado": Risk("tornado", 2)}
    dash.daycast = Daycast("KHSV", 70, 50)
    dash.errors = {"current": "no recent observation from KHSV"}
    return dash


class TestArguments:

    def test_dashboard_is_default(self):
        args = cli.parse_arguments(["--station", "KBHM"])
        assert args.command == "dashboard"
        assert args.format == "txt"
        assert args.station == "KBHM"

    def test_subcommand(self):
        args = cli.parse_arguments(["risk", "--layer", "hail"])
        assert args.command == "risk"
        assert args.layer == "hail"

    def test_bad_layer_rejected(self):
        with pytest.raises(SystemExit):
            cli.parse_arguments(["risk", "--layer", "snow"])

    def test_watch_interval(self):
        assert cli.parse_arguments(["dashboard", "--watch", "300"]).watch == 300

    @pytest.mark.parametrize("interval", ["-5", "0", "soon"])
    def test_watch_interval_rejected(self, interval, capsys):
        with patch("meso.main.build_dashboard") as build:
            with pytest.raises(SystemExit) as info:
                cli.main(["dashboard", "--watch", interval])
        assert info.value.code == 2
        assert "--watch" in capsys.readouterr().err
        build.assert_not_called()


class TestDashboardCommand:

    def test_text(self, dashboard, capsys):
        with patch("meso.main.build_dashboard", return_value=dashboard) as build:
            assert cli.main([]) == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "MRGL (marginal)" in out
        assert build.call_args[0][0].location.station == "KHSV"

    def test_json_to_file(self, dashboard, tmp_path):
        out = tmp_path / "dash.json"
        with patch("meso.main.build_dashboard", return_value=dashboard):
            assert cli.main(["dashboard", "-f", "json", "-o", str(out)]) == cli.EXIT_OK
        doc = json.loads(out.read_text(encoding="utf-8"))
        assert doc["daycast"]["high_f"] == 70

    def test_location_flags(self, dashboard):
        with patch("meso.main.build_dashboard", return_value=dashboard) as build:
            cli.main(["--lat", "35.2", "--lon", "-97.4", "--station", "kokc"])
        loc = build.call_args[0][0].location
        assert (loc.lat, loc.lon, loc.station) == (35.2, -97.4, "KOKC")

    def test_everything_failed(self, now):
        dash = Dashboard(Location(34.7382, -86.6018, "KHSV"), generated=now)
        dash.errors = {"risk": "x", "daycast": "y", "current": "z"}
        with patch("meso.main.build_dashboard", return_value=dash):
            assert cli.main([]) == cli.EXIT_FAILED

    def test_download(self, dashboard):
        with patch("meso.main.build_dashboard", return_value=dashboard), \
                patch("meso.main.download_images") as images:
            cli.main(["dashboard", "--download"])
        images.assert_called_once()

    def test_bad_location(self, capsys):
        assert cli.main(["--lat", "123"]) == cli.EXIT_CONFIG
        assert "latitude" in capsys.readouterr().err

    def test_from_station(self, dashboard):
        site = Station("KBHM")
        site.lat, site.lon = 33.56, -86.75
        with patch("meso.backends.aviationweatherdotgov.get_station_coords",
                   return_value=site), \
                patch("meso.main.build_dashboard", return_value=dashboard) as build:
            cli.main(["--station", "KBHM", "--from-station"])
        loc = build.call_args[0][0].location
        assert (loc.lat, loc.lon) == (33.56, -86.75)

    def test_logging_ready_before_station_lookup(self, dashboard):
        order = []

        def lookup(settings):
            order.append("lookup")
            return settings

        with patch("meso.main.setup_logging",
                   side_effect=lambda *a: order.append("logging")), \
                patch("meso.main.resolve_station_location", side_effect=lookup), \
                patch("meso.main.build_dashboard", return_value=dashboard):
            assert cli.main(["--from-station"]) == cli.EXIT_OK
        assert order == ["logging", "lookup"]

    def test_from_station_lookup_fails(self):
        with patch("meso.backends.aviationweatherdotgov.get_station_coords",
                   side_effect=FetchError("https://awc", "timed out")):
            assert cli.main(["--from-station"]) == cli.EXIT_FAILED


class TestOtherCommands:

    def test_risk(self, capsys):
        with patch("meso.backends.spc.fetch_risk", return_value=Risk("hail", 15)) as fetch:
            assert cli.main(["risk", "--layer", "hail"]) == cli.EXIT_OK
        assert fetch.call_args[0][:3] == ("hail", 34.7382, -86.6018)
        assert "15%" in capsys.readouterr().out

    def test_daycast(self, capsys):
        with patch("meso.backends.nbm.fetch_daycast",
                   return_value=Daycast("KHSV", 82, 56, issued="2026-10-19T12:00:00Z")):
            assert cli.main(["daycast"]) == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "KHSV high 82°F low 56°F" in out
        assert "2026-10-19T12:00:00Z" in out

    def test_fetch_failure_exit_code(self):
        with patch("meso.backends.nbm.fetch_daycast",
                   side_effect=FetchError("https://blend", "HTTP 500")):
            assert cli.main(["daycast"]) == cli.EXIT_FAILED

    def test_outlook_url(self, capsys):
        assert cli.main(["outlook", "--kind", "tornado"]) == cli.EXIT_OK
        assert capsys.readouterr().out.strip().endswith("day1probotlk_torn.gif")

    def test_climate_download(self, capsys):
        with patch("meso.main.download", return_value="/cache/610temp.new.gif") as dl:
            assert cli.main(["climate", "--download"]) == cli.EXIT_OK
        assert dl.call_args[0][0].endswith("610temp.new.gif")
        assert "/cache/610temp.new.gif" in capsys.readouterr().out

    def test_metar_history(self, capsys):
        with patch("meso.backends.aviationweatherdotgov.get_metars",
                   return_value=["KHSV 191553Z 00000KT 10SM CLR 12/01 A3012"]) as get:
            assert cli.main(["metar", "--hours", "3"]) == cli.EXIT_OK
        assert get.call_args[0][:2] == ("KHSV", 3)
        assert "KHSV 191553Z" in capsys.readouterr().out

    def test_metar_nothing_reported(self, capsys):
        with patch("meso.backends.aviationweatherdotgov.get_current_metar",
                   return_value=None):
            assert cli.main(["metar"]) == cli.EXIT_FAILED

    def test_station(self, capsys):
        site = Station("KHSV")
        site.lat, site.lon, site.site = 34.644, -86.7861, "Huntsville Intl"
        with patch("meso.backends.aviationweatherdotgov.get_station_coords",
                   return_value=site):
            assert cli.main(["station"]) == cli.EXIT_OK
        assert "site: Huntsville Intl" in capsys.readouterr().out
