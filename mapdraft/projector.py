# mapdraft/projector.py
from typing import NamedTuple, Protocol

from pyproj import Transformer, ProjError

from mapdraft.errors import ProjectionError

# Half the width of the Web Mercator square in metres (EPSG:3857).
MERCATOR_HALF_EXTENT = 20037508.342789244
# Latitude at which the Web Mercator square ends.
MAX_LATITUDE = 85.051129


class ScreenPoint(NamedTuple):
    x: float
    y: float


class LngLat(NamedTuple):
    lng: float
    lat: float


class Projector(Protocol):
    """Converts between geographic [lng, lat] and screen pixels."""

    def project(self, lng_lat) -> ScreenPoint:
        ...

    def unproject(self, point) -> LngLat:
        ...


class WebMercatorProjector:
    """
    Pixel projection of a map viewport the way slippy maps lay it out:
    the whole Web Mercator square is tile_size * 2**zoom pixels wide,
    y grows downwards and the viewport center sits in the middle of a
    width x height canvas.
    """

    def __init__(self, center=(0.0, 0.0), zoom: float = 0.0,
                 width: float = 512, height: float = 512, tile_size: int = 512):
        self._to_mercator = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
        self._to_lnglat = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)
        self.tile_size = tile_size
        self.zoom = float(zoom)
        self.width = float(width)
        self.height = float(height)
        self.center = LngLat(float(center[0]), float(center[1]))

    @property
    def world_size(self) -> float:
        return self.tile_size * 2 ** self.zoom

    def pan_to(self, center) -> None:
        self.center = LngLat(float(center[0]), float(center[1]))

    def set_zoom(self, zoom: float) -> None:
        self.zoom = float(zoom)

    def resize(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)

    def _world_pixels(self, lng: float, lat: float) -> tuple[float, float]:
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
        try:
            mx, my = self._to_mercator.transform(lng, lat, errcheck=True)
        except ProjError as e:
            raise ProjectionError(f"Could not project ({lng}, {lat}): {e}") from e
        scale = self.world_size / (2 * MERCATOR_HALF_EXTENT)
        return (mx + MERCATOR_HALF_EXTENT) * scale, (MERCATOR_HALF_EXTENT - my) * scale

    def project(self, lng_lat) -> ScreenPoint:
        wx, wy = self._world_pixels(lng_lat[0], lng_lat[1])
        cx, cy = self._world_pixels(self.center.lng, self.center.lat)
        return ScreenPoint(wx - cx + self.width / 2, wy - cy + self.height / 2)

    def unproject(self, point) -> LngLat:
        cx, cy = self._world_pixels(self.center.lng, self.center.lat)
        wx = point[0] + cx - self.width / 2
        wy = point[1] + cy - self.height / 2
        scale = (2 * MERCATOR_HALF_EXTENT) / self.world_size
        mx = wx * scale - MERCATOR_HALF_EXTENT
        my = MERCATOR_HALF_EXTENT - wy * scale
        try:
            lng, lat = self._to_lnglat.transform(mx, my, errcheck=True)
        except ProjError as e:
            raise ProjectionError(f"Could not unproject ({point[0]}, {point[1]}): {e}") from e
        return LngLat(lng, lat)
