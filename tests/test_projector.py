import unittest
from unittest.mock import MagicMock, patch

from pyproj import ProjError

from mapdraft.errors import ProjectionError
from mapdraft.projector import LngLat, ScreenPoint, WebMercatorProjector


class TestWebMercatorProjector(unittest.TestCase):

    def setUp(self):
        self.projector = WebMercatorProjector(center=(-70.65, -33.45), zoom=12, width=1024, height=768)

    def test_center_maps_to_viewport_middle(self):
        pt = self.projector.project((-70.65, -33.45))
        self.assertIsInstance(pt, ScreenPoint)
        self.assertAlmostEqual(pt.x, 512.0, places=6)
        self.assertAlmostEqual(pt.y, 384.0, places=6)

    def test_world_at_zoom_zero(self):
        projector = WebMercatorProjector(center=(0, 0), zoom=0, width=512, height=512)
        self.assertEqual(projector.world_size, 512)
        top_left = projector.project((-180, 85.051129))
        self.assertAlmostEqual(top_left.x, 0.0, places=3)
        self.assertAlmostEqual(top_left.y, 0.0, places=3)

    def test_east_is_right_north_is_up(self):
        center = self.projector.project((-70.65, -33.45))
        east = self.projector.project((-70.60, -33.45))
        north = self.projector.project((-70.65, -33.40))
        self.assertGreater(east.x, center.x)
        self.assertLess(north.y, center.y)

    def test_round_trip(self):
        samples = [(-70.65, -33.45), (-70.7, -33.5), (-70.6, -33.4), (-71.0, -33.0)]
        for lng, lat in samples:
            with self.subTest(point=(lng, lat)):
                back = self.projector.unproject(self.projector.project((lng, lat)))
                self.assertIsInstance(back, LngLat)
                self.assertAlmostEqual(back.lng, lng, places=7)
                self.assertAlmostEqual(back.lat, lat, places=7)

    def test_latitude_clamped(self):
        projector = WebMercatorProjector(center=(0, 0), zoom=0)
        self.assertAlmostEqual(projector.project((0, 90)).y, projector.project((0, 85.051129)).y, places=6)

    def test_viewport_changes(self):
        self.projector.pan_to((0, 0))
        self.projector.set_zoom(1)
        self.projector.resize(200, 100)
        pt = self.projector.project((0, 0))
        self.assertAlmostEqual(pt.x, 100.0, places=6)
        self.assertAlmostEqual(pt.y, 50.0, places=6)
        self.assertEqual(self.projector.world_size, 1024)

    def test_zoom_doubles_pixel_distance(self):
        a = self.projector.project((-70.60, -33.45))
        self.projector.set_zoom(13)
        b = self.projector.project((-70.60, -33.45))
        self.assertAlmostEqual(b.x - 512, 2 * (a.x - 512), places=6)

    @patch('mapdraft.projector.Transformer')
    def test_proj_error_wrapped(self, MockTransformerClass):
        mock_transformer_instance = MagicMock()
        MockTransformerClass.from_crs.return_value = mock_transformer_instance
        mock_transformer_instance.transform.side_effect = ProjError("Mocked Transform error")

        projector = WebMercatorProjector()
        with self.assertRaises(ProjectionError):
            projector.project((0, 0))
        with self.assertRaises(ProjectionError):
            projector.unproject((0, 0))


if __name__ == '__main__':
    unittest.main()
