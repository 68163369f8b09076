"""
Unit tests for the command-line interface.

Tests the typer commands with the planners patched out.
"""

import json
import shutil
import tempfile
import unittest
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from owltrek import __version__
from owltrek.api.core.enums import NightCategory, WeatherCondition, WeatherPolicy
from owltrek.api.core.exceptions import InvalidTimezoneError
from owltrek.api.location.observer import ObserverLocation, clear_observer_location
from owltrek.api.observation.night_analyzer import NEW_MOON_REASON, NightAnalysis, WeatherSummary
from owltrek.api.observation.night_planner import LocationForecast, NightResult
from owltrek.cli.main import app


LOCATION = ObserverLocation(
    latitude=33.159586, longitude=-117.067950, timezone="America/Los_Angeles", name="San Marcos, CA"
)
NOW = datetime(2024, 12, 16, 20, 0, tzinfo=UTC)


def _analysis(date_string, good):
    return NightAnalysis(
        date_string=date_string,
        illumination_percent=2 if good else 55,
        moon_phase=0.01 if good else 0.3,
        moon_rise=None,
        moon_set=None,
        sunset=datetime(2024, 12, 17, 0, 45, tzinfo=UTC),
        weather=WeatherSummary(condition=WeatherCondition.CLEAR, cloud_cover_percent=5),
        is_good_night=good,
        category=NightCategory.STARGAZING if good else NightCategory.NONE,
        reason=NEW_MOON_REASON if good else None,
    )


def _forecast():
    nights = (
        NightResult(date=datetime(2024, 12, 16, 8, 0, tzinfo=UTC), analysis=_analysis("2024-12-16", False)),
        NightResult(date=datetime(2024, 12, 17, 8, 0, tzinfo=UTC), analysis=_analysis("2024-12-17", True)),
    )
    return LocationForecast(location=LOCATION, generated_at=NOW, nights=nights, weather_available=True)


class TestMainApp(unittest.TestCase):
    """Test suite for the main app"""

    def setUp(self):
        self.runner = CliRunner()

    def test_version(self):
        """Test the version command"""
        result = self.runner.invoke(app, ["version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.stdout)

    def test_help_lists_command_groups(self):
        """Test that sub-apps are registered"""
        result = self.runner.invoke(app, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("nights", result.stdout)
        self.assertIn("location", result.stdout)


class TestNightsCommands(unittest.TestCase):
    """Test suite for the nights commands"""

    def setUp(self):
        self.runner = CliRunner()

    @patch("owltrek.cli.commands.nights.plan_location", new_callable=AsyncMock)
    @patch("owltrek.cli.commands.nights.get_observer_location", return_value=LOCATION)
    def test_forecast_json(self, mock_get_location, mock_plan):
        """Test JSON forecast for the saved location"""
        mock_plan.return_value = _forecast()

        result = self.runner.invoke(app, ["nights", "forecast", "--json"])

        self.assertEqual(result.exit_code, 0, msg=result.output)
        data = json.loads(result.stdout)
        self.assertEqual(data["next_good_night"], {"date": "2024-12-17", "days_from_now": 1})
        mock_plan.assert_awaited_once_with(LOCATION, days=7, weather_policy=WeatherPolicy.GATED)

    @patch("owltrek.cli.commands.nights.plan_location", new_callable=AsyncMock)
    def test_forecast_table(self, mock_plan):
        """Test the table view and next outdoor night line"""
        mock_plan.return_value = _forecast()

        result = self.runner.invoke(
            app,
            ["nights", "forecast", "--lat", "33.159586", "--lon", "-117.06795", "--tz", "America/Los_Angeles"],
        )

        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("Next outdoor night", result.stdout)
        self.assertIn("2024-12-17", result.stdout)
        self.assertIn("1 good night coming up", result.stdout)

    @patch("owltrek.cli.commands.nights.plan_location", new_callable=AsyncMock)
    def test_forecast_options(self, mock_plan):
        """Test days and weather policy options"""
        mock_plan.return_value = _forecast()

        result = self.runner.invoke(
            app,
            [
                "nights",
                "forecast",
                "--lat",
                "33.159586",
                "--lon",
                "-117.06795",
                "--tz",
                "America/Los_Angeles",
                "--days",
                "3",
                "--weather-policy",
                "optimistic",
                "--json",
            ],
        )

        self.assertEqual(result.exit_code, 0, msg=result.output)
        location = mock_plan.await_args.args[0]
        self.assertEqual(location.timezone, "America/Los_Angeles")
        self.assertEqual(mock_plan.await_args.kwargs, {"days": 3, "weather_policy": WeatherPolicy.OPTIMISTIC})

    @patch("owltrek.cli.commands.nights.plan_location", new_callable=AsyncMock)
    def test_forecast_environment(self, mock_plan):
        """Test coordinates and policy from environment variables"""
        mock_plan.return_value = _forecast()
        env = {
            "OWLTREK_LATITUDE": "-24.6272",
            "OWLTREK_LONGITUDE": "-70.4042",
            "OWLTREK_TIMEZONE": "America/Santiago",
            "OWLTREK_WEATHER_POLICY": "optimistic",
        }

        result = self.runner.invoke(app, ["nights", "forecast", "--json"], env=env)

        self.assertEqual(result.exit_code, 0, msg=result.output)
        location = mock_plan.await_args.args[0]
        self.assertEqual((location.latitude, location.timezone), (-24.6272, "America/Santiago"))
        self.assertEqual(mock_plan.await_args.kwargs["weather_policy"], WeatherPolicy.OPTIMISTIC)

    def test_forecast_requires_both_coordinates(self):
        """Test that --lat without --lon is rejected"""
        result = self.runner.invoke(app, ["nights", "forecast", "--lat", "33.0"])
        self.assertEqual(result.exit_code, 1)

    @patch("owltrek.cli.commands.nights.plan_location", new_callable=AsyncMock)
    def test_forecast_error(self, mock_plan):
        """Test that library errors exit with code 1"""
        mock_plan.side_effect = InvalidTimezoneError("Unknown timezone: 'Mars/Base'")

        result = self.runner.invoke(
            app, ["nights", "forecast", "--lat", "33.0", "--lon", "-117.0", "--tz", "America/Los_Angeles"]
        )

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Failed to forecast nights", result.output)

    @patch("owltrek.cli.commands.nights.build_moon_calendar")
    @patch("owltrek.cli.commands.nights.get_observer_location", return_value=LOCATION)
    def test_calendar_json(self, mock_get_location, mock_calendar):
        """Test the moon calendar as JSON"""
        mock_calendar.return_value = list(_forecast().nights)

        result = self.runner.invoke(app, ["nights", "calendar", "--days", "2", "--json"])

        self.assertEqual(result.exit_code, 0, msg=result.output)
        data = json.loads(result.stdout)
        self.assertEqual([night["date"] for night in data], ["2024-12-16", "2024-12-17"])
        mock_calendar.assert_called_once_with(LOCATION, days=2)

    @patch("owltrek.cli.commands.nights.build_moon_calendar")
    @patch("owltrek.cli.commands.nights.get_observer_location", return_value=LOCATION)
    def test_calendar_table(self, mock_get_location, mock_calendar):
        """Test the moon calendar table"""
        mock_calendar.return_value = list(_forecast().nights)

        result = self.runner.invoke(app, ["nights", "calendar"])

        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("1 of 2 nights", result.stdout)
        mock_calendar.assert_called_once_with(LOCATION, days=30)


class TestLocationCommands(unittest.TestCase):
    """Test suite for the location commands"""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        env_patcher = patch.dict("os.environ", {"OWLTREK_CONFIG_DIR": self.temp_dir})
        env_patcher.start()
        self.addCleanup(env_patcher.stop)
        clear_observer_location()

    def tearDown(self):
        clear_observer_location()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_set_show_clear(self):
        """Test saving, showing and clearing a location"""
        result = self.runner.invoke(
            app, ["location", "set", "--lat", "-24.6272", "--lon", "-70.4042", "--tz", "America/Santiago", "--name", "Atacama"]
        )
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("Atacama", result.stdout)

        result = self.runner.invoke(app, ["location", "show", "--json"])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        data = json.loads(result.stdout)
        self.assertEqual(data["name"], "Atacama")
        self.assertEqual(data["timezone"], "America/Santiago")
        self.assertTrue(data["config_exists"])

        result = self.runner.invoke(app, ["location", "clear"])
        self.assertEqual(result.exit_code, 0, msg=result.output)

        result = self.runner.invoke(app, ["location", "show", "--json"])
        self.assertIn("San Marcos", json.loads(result.stdout)["name"])

    def test_set_invalid_timezone(self):
        """Test that an unknown timezone exits with code 1"""
        result = self.runner.invoke(app, ["location", "set", "--lat", "10", "--lon", "10", "--tz", "Bad/Zone"])
        self.assertEqual(result.exit_code, 1)

    def test_show_table(self):
        """Test the table view of the default location"""
        result = self.runner.invoke(app, ["location", "show"])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("America/Los_Angeles", result.stdout)


if __name__ == "__main__":
    unittest.main()
