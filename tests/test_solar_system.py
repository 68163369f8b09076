"""
Unit tests for solar_system.py

Tests moon phase naming, illumination rounding and the Skyfield-backed
astronomy provider (with Skyfield mocked, so no ephemeris download).
"""

import tempfile
import unittest
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

from owltrek.api.astronomy.solar_system import (
    EPHEMERIS_FILE,
    LOOKUP_WINDOW,
    MoonIllumination,
    MoonTimes,
    SkyfieldAstronomy,
    _get_skyfield_directory,
    _get_skyfield_objects,
    illumination_percent,
    moon_phase_name,
)
from owltrek.api.core.enums import MoonPhase
from owltrek.api.core.exceptions import EphemerisError


def _skyfield_time(dt: datetime) -> MagicMock:
    t = MagicMock()
    t.utc_datetime.return_value = dt
    return t


class TestMoonPhaseName(unittest.TestCase):
    """Test suite for moon_phase_name"""

    def test_canonical_points(self):
        """Test the eight canonical phase points"""
        cases = [
            (0.0, MoonPhase.NEW_MOON),
            (0.125, MoonPhase.WAXING_CRESCENT),
            (0.25, MoonPhase.FIRST_QUARTER),
            (0.375, MoonPhase.WAXING_GIBBOUS),
            (0.5, MoonPhase.FULL_MOON),
            (0.625, MoonPhase.WANING_GIBBOUS),
            (0.75, MoonPhase.LAST_QUARTER),
            (0.875, MoonPhase.WANING_CRESCENT),
        ]
        for phase, expected in cases:
            self.assertEqual(moon_phase_name(phase), expected, msg=f"phase={phase}")

    def test_bin_boundaries(self):
        """Test that bins are centered, with boundaries at sixteenths"""
        self.assertEqual(moon_phase_name(0.0624), MoonPhase.NEW_MOON)
        self.assertEqual(moon_phase_name(0.0625), MoonPhase.WAXING_CRESCENT)
        self.assertEqual(moon_phase_name(0.4375), MoonPhase.FULL_MOON)
        self.assertEqual(moon_phase_name(0.5624), MoonPhase.FULL_MOON)
        self.assertEqual(moon_phase_name(0.5625), MoonPhase.WANING_GIBBOUS)

    def test_new_moon_wraps(self):
        """Test that the end of the cycle is New Moon"""
        self.assertEqual(moon_phase_name(0.9375), MoonPhase.NEW_MOON)
        self.assertEqual(moon_phase_name(0.99), MoonPhase.NEW_MOON)
        self.assertEqual(moon_phase_name(1.0), MoonPhase.NEW_MOON)

    def test_phase_name_values(self):
        """Test that names are display strings"""
        self.assertEqual(str(moon_phase_name(0.5)), "Full Moon")


class TestIlluminationPercent(unittest.TestCase):
    """Test suite for illumination_percent"""

    def test_round_half_up(self):
        """Test that halves round up using the decimal value"""
        self.assertEqual(illumination_percent(0.955), 96)
        self.assertEqual(illumination_percent(0.125), 13)
        self.assertEqual(illumination_percent(0.375), 38)
        self.assertEqual(illumination_percent(0.625), 63)
        self.assertEqual(illumination_percent(0.875), 88)
        self.assertEqual(illumination_percent(0.095), 10)

    def test_extremes(self):
        """Test 0% and 100%"""
        self.assertEqual(illumination_percent(0.0), 0)
        self.assertEqual(illumination_percent(1.0), 100)

    def test_rounds_down_below_half(self):
        """Test values below .5 round down"""
        self.assertEqual(illumination_percent(0.994), 99)
        self.assertEqual(illumination_percent(0.0149), 1)


class TestSkyfieldDirectory(unittest.TestCase):
    """Test suite for Skyfield cache directory selection"""

    @patch.dict("os.environ", {"OWLTREK_SKYFIELD_DIR": "/tmp/owltrek-skyfield"})
    def test_directory_from_environment(self):
        """Test OWLTREK_SKYFIELD_DIR overrides the default"""
        self.assertEqual(_get_skyfield_directory(), Path("/tmp/owltrek-skyfield"))

    @patch.dict("os.environ", {}, clear=True)
    def test_default_directory(self):
        """Test the default ~/.skyfield directory"""
        self.assertEqual(_get_skyfield_directory().name, ".skyfield")


class TestGetSkyfieldObjects(unittest.TestCase):
    """Test suite for _get_skyfield_objects"""

    def setUp(self):
        _get_skyfield_objects.cache_clear()
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        _get_skyfield_objects.cache_clear()
        self.temp_dir.cleanup()

    @patch("owltrek.api.astronomy.solar_system.Loader")
    def test_loads_and_caches(self, mock_loader_class):
        """Test that the ephemeris is loaded once per directory"""
        loader = MagicMock()
        mock_loader_class.return_value = loader

        first = _get_skyfield_objects(self.temp_dir.name)
        second = _get_skyfield_objects(self.temp_dir.name)

        self.assertIs(first, second)
        mock_loader_class.assert_called_once_with(self.temp_dir.name)
        loader.assert_called_once_with(EPHEMERIS_FILE)

    @patch("owltrek.api.astronomy.solar_system.Loader")
    def test_download_failure(self, mock_loader_class):
        """Test that load failures raise EphemerisError"""
        loader = MagicMock(side_effect=OSError("network unreachable"))
        mock_loader_class.return_value = loader

        with self.assertRaises(EphemerisError) as context:
            _get_skyfield_objects(self.temp_dir.name)
        self.assertIn(EPHEMERIS_FILE, str(context.exception))


class TestSkyfieldAstronomy(unittest.TestCase):
    """Test suite for SkyfieldAstronomy with Skyfield mocked"""

    def setUp(self):
        self.ts = MagicMock()
        self.eph = MagicMock()
        objects_patcher = patch(
            "owltrek.api.astronomy.solar_system._get_skyfield_objects", return_value=(self.ts, self.eph)
        )
        almanac_patcher = patch("owltrek.api.astronomy.solar_system.almanac")
        wgs84_patcher = patch("owltrek.api.astronomy.solar_system.wgs84")
        self.mock_objects = objects_patcher.start()
        self.mock_almanac = almanac_patcher.start()
        self.mock_wgs84 = wgs84_patcher.start()
        self.addCleanup(patch.stopall)

        self.provider = SkyfieldAstronomy(ephemeris_dir=Path("/tmp/ephemeris"))
        self.instant = datetime(2024, 12, 16, 8, 0, tzinfo=UTC)

    def test_moon_illumination(self):
        """Test illumination fraction and phase from the almanac"""
        self.mock_almanac.fraction_illuminated.return_value = 0.98
        self.mock_almanac.moon_phase.return_value = MagicMock(degrees=180.0)

        result = self.provider.moon_illumination(self.instant)

        self.assertIsInstance(result, MoonIllumination)
        self.assertAlmostEqual(result.fraction, 0.98)
        self.assertAlmostEqual(result.phase, 0.5)
        self.mock_objects.assert_called_once_with("/tmp/ephemeris")

    def test_moon_illumination_naive_instant(self):
        """Test that naive instants are treated as UTC"""
        self.mock_almanac.fraction_illuminated.return_value = 0.5
        self.mock_almanac.moon_phase.return_value = MagicMock(degrees=90.0)

        self.provider.moon_illumination(datetime(2024, 12, 16, 8, 0))

        self.ts.from_datetime.assert_called_once_with(self.instant)

    def test_moon_illumination_out_of_range(self):
        """Test that ephemeris range errors raise EphemerisError"""
        self.mock_almanac.fraction_illuminated.side_effect = ValueError("outside ephemeris range")

        with self.assertRaises(EphemerisError):
            self.provider.moon_illumination(self.instant)

    def test_moon_times(self):
        """Test first moonrise and moonset in the lookup window"""
        moonset = datetime(2024, 12, 16, 15, 30, tzinfo=UTC)
        moonrise = datetime(2024, 12, 17, 2, 10, tzinfo=UTC)
        later_set = datetime(2024, 12, 17, 6, 0, tzinfo=UTC)
        self.mock_almanac.find_discrete.return_value = (
            [_skyfield_time(moonset), _skyfield_time(moonrise), _skyfield_time(later_set)],
            [0, 1, 0],
        )

        result = self.provider.moon_times(self.instant, 33.159586, -117.067950)

        self.assertEqual(result, MoonTimes(moonrise_time=moonrise, moonset_time=moonset))
        self.mock_wgs84.latlon.assert_called_once_with(33.159586, -117.067950)
        self.ts.from_datetime.assert_any_call(self.instant)
        self.ts.from_datetime.assert_any_call(self.instant + LOOKUP_WINDOW)

    def test_moon_times_no_events(self):
        """Test a window with no moonrise or moonset"""
        self.mock_almanac.find_discrete.return_value = ([], [])

        result = self.provider.moon_times(self.instant, 33.159586, -117.067950)

        self.assertIsNone(result.moonrise_time)
        self.assertIsNone(result.moonset_time)

    def test_moon_times_error(self):
        """Test that almanac failures raise EphemerisError"""
        self.mock_almanac.find_discrete.side_effect = ValueError("outside ephemeris range")

        with self.assertRaises(EphemerisError):
            self.provider.moon_times(self.instant, 33.159586, -117.067950)

    def test_sunset(self):
        """Test that the first setting event is the sunset"""
        sunrise = datetime(2024, 12, 16, 14, 45, tzinfo=UTC)
        sunset = datetime(2024, 12, 17, 0, 45, tzinfo=UTC)
        self.mock_almanac.find_discrete.return_value = (
            [_skyfield_time(sunrise), _skyfield_time(sunset)],
            [1, 0],
        )

        self.assertEqual(self.provider.sunset(self.instant, 33.159586, -117.067950), sunset)

    def test_no_sunset(self):
        """Test midnight sun returns None"""
        self.mock_almanac.find_discrete.return_value = ([], [])

        self.assertIsNone(self.provider.sunset(self.instant, 78.2232, 15.6267))


if __name__ == "__main__":
    unittest.main()
