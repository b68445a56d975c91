import datetime as dt
import unittest

import kundli_core.kundli_core as kc
from settings import AYANAMSHA, ZODIAC_MODE


def _separation(a: float, b: float) -> float:
    delta = abs((a - b) % 360.0)
    return 360.0 - delta if delta > 180 else delta


class TestSwissEphemeris(unittest.TestCase):
    # Known instant
    dtu = dt.datetime(2000, 1, 1, 12, 0, 0, tzinfo=dt.timezone.utc)

    def setUp(self):
        self.eph = kc.SwissEphemeris()

    def tearDown(self):
        kc.set_zodiac(ZODIAC_MODE, AYANAMSHA)

    def test_tropical_sun_at_j2000(self):
        kc.set_zodiac("tropical")
        sun = self.eph.longitude(self.dtu, "Sun")
        # ~280.37° (10° Capricorn)
        self.assertAlmostEqual(sun, 280.37, delta=0.5)

    def test_sidereal_vs_tropical(self):
        kc.set_zodiac("sidereal", "Lahiri")
        lon_sid = self.eph.longitude(self.dtu, "Sun")
        self.assertEqual(kc.current_zodiac_info()["mode"], "sidereal")

        kc.set_zodiac("tropical")
        lon_tro = self.eph.longitude(self.dtu, "Sun")

        # Should be around ~23-24 degrees for year 2000
        delta = _separation(lon_tro, lon_sid)
        self.assertGreater(delta, 15.0)
        self.assertLess(delta, 30.0)

    def test_user_custom_offset(self):
        kc.set_zodiac("tropical")
        lon_tro = self.eph.longitude(self.dtu, "Sun")

        kc.set_zodiac("sidereal", "USER", 23.85)
        lon_user = self.eph.longitude(self.dtu, "Sun")
        self.assertGreater(_separation(lon_tro, lon_user), 5.0)
        self.assertEqual(kc.current_zodiac_info()["custom_offset_deg"], 23.85)

    def test_unknown_ayanamsha_falls_back_to_lahiri(self):
        kc.set_zodiac("sidereal", "Nonexistent")
        self.assertEqual(kc.current_zodiac_info()["ayanamsha"], "Lahiri")

    def test_nodes_and_bodies(self):
        kc.set_zodiac("tropical")
        for body in ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn", "Rahu"):
            lon = self.eph.longitude(self.dtu, body)
            self.assertIsNotNone(lon, body)
            self.assertTrue(0.0 <= lon < 360.0, body)
        with self.assertRaises(ValueError):
            self.eph.longitude(self.dtu, "Pluto")

    def test_normalize_deg(self):
        self.assertEqual(kc.normalize_deg(-30.0), 330.0)
        self.assertEqual(kc.normalize_deg(720.5), 0.5)
        self.assertEqual(kc.normalize_deg(-360.0), 0.0)
        self.assertEqual(kc.normalize_deg(359.5), 359.5)

    def test_houses_give_twelve_cusps(self):
        kc.set_zodiac("tropical")
        asc, cusps = self.eph.houses(self.dtu, 19.0760, 72.8777, "P")
        self.assertEqual(len(cusps), 12)
        self.assertAlmostEqual(_separation(asc, cusps[0]), 0.0, delta=0.01)


if __name__ == "__main__":
    unittest.main()
