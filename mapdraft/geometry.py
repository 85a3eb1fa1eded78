# mapdraft/geometry.py
"""
Geometry variants for drafts and derivation of the edit handles
(vertices and midpoints) drawn on top of them.

GeoJSON geometries are parsed into a closed set of variants:
PointGeometry, LineStringGeometry, PolygonGeometry and OtherGeometry.
Every dispatch below covers all four, so a new variant that is not
handled fails loudly instead of silently producing no handles.
"""
from dataclasses import dataclass
from numbers import Real
from typing import Any, Union

from mapdraft.errors import MalformedGeometryError

Coordinate = tuple[float, ...]


class GeometryType:
    POINT = "Point"
    LINESTRING = "LineString"
    POLYGON = "Polygon"


META_VERTEX = "vertex"
META_MIDPOINT = "midpoint"


@dataclass(frozen=True)
class PointGeometry:
    coordinates: Coordinate


@dataclass(frozen=True)
class LineStringGeometry:
    coordinates: tuple[Coordinate, ...]


@dataclass(frozen=True)
class PolygonGeometry:
    rings: tuple[tuple[Coordinate, ...], ...]

    @property
    def outer_ring(self) -> tuple[Coordinate, ...]:
        return self.rings[0]


@dataclass(frozen=True)
class OtherGeometry:
    """Any well-formed geometry type without edit handles (MultiPoint, ...)."""
    type: str
    coordinates: Any = None


Geometry = Union[PointGeometry, LineStringGeometry, PolygonGeometry, OtherGeometry]


def _parse_position(value: Any, where: str) -> Coordinate:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise MalformedGeometryError(f"{where}: expected a [lng, lat] position, got {value!r}")
    if not all(isinstance(v, Real) and not isinstance(v, bool) for v in value):
        raise MalformedGeometryError(f"{where}: position values must be numbers, got {value!r}")
    return tuple(value)


def _parse_positions(value: Any, where: str) -> tuple[Coordinate, ...]:
    if not isinstance(value, (list, tuple)):
        raise MalformedGeometryError(f"{where}: expected a list of positions, got {value!r}")
    return tuple(_parse_position(pos, f"{where}[{i}]") for i, pos in enumerate(value))


def parse_geometry(geometry: Any) -> Geometry:
    """
    Turns a GeoJSON geometry dict into one of the geometry variants.
    Raises MalformedGeometryError when the geometry or its coordinates are
    missing or not shaped as the type requires. Unknown types are returned
    as OtherGeometry without inspecting their coordinates.
    """
    if not isinstance(geometry, dict):
        raise MalformedGeometryError(f"Geometry must be a mapping, got {geometry!r}")
    geom_type = geometry.get("type")
    if not isinstance(geom_type, str):
        raise MalformedGeometryError(f"Geometry has no type: {geometry!r}")
    if "coordinates" not in geometry or geometry["coordinates"] is None:
        if geom_type in (GeometryType.POINT, GeometryType.LINESTRING, GeometryType.POLYGON):
            raise MalformedGeometryError(f"{geom_type} geometry has no coordinates")
        return OtherGeometry(geom_type, geometry.get("coordinates"))

    coords = geometry["coordinates"]
    if geom_type == GeometryType.POINT:
        return PointGeometry(_parse_position(coords, "Point"))
    if geom_type == GeometryType.LINESTRING:
        return LineStringGeometry(_parse_positions(coords, "LineString"))
    if geom_type == GeometryType.POLYGON:
        if not isinstance(coords, (list, tuple)) or not coords:
            raise MalformedGeometryError(f"Polygon needs at least an outer ring, got {coords!r}")
        return PolygonGeometry(tuple(
            _parse_positions(ring, f"Polygon ring {i}") for i, ring in enumerate(coords)
        ))
    return OtherGeometry(geom_type, coords)


def edit_ring(geometry: Geometry) -> tuple[Coordinate, ...] | None:
    """Coordinates handles are placed on: the line itself or the polygon's outer ring."""
    if isinstance(geometry, LineStringGeometry):
        return geometry.coordinates
    if isinstance(geometry, PolygonGeometry):
        return geometry.outer_ring
    if isinstance(geometry, (PointGeometry, OtherGeometry)):
        return None
    raise TypeError(f"Unhandled geometry variant: {type(geometry).__name__}")


def vertex_count(geometry: Geometry) -> int:
    ring = edit_ring(geometry)
    if ring is None:
        return 0
    if isinstance(geometry, PolygonGeometry):
        # closed ring: the last position repeats the first
        return max(len(ring) - 1, 0)
    return len(ring)


def handle_feature(meta: str, index: int, coordinates, parent=None) -> dict:
    properties = {"meta": meta, "index": index}
    if parent is not None:
        properties["parent"] = parent
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": GeometryType.POINT, "coordinates": list(coordinates)},
    }


def vertex_handles(geometry: Geometry, parent=None) -> list[dict]:
    ring = edit_ring(geometry)
    if ring is None:
        return []
    return [
        handle_feature(META_VERTEX, j, ring[j], parent)
        for j in range(vertex_count(geometry))
    ]


def midpoint_handles(geometry: Geometry, projector, parent=None) -> list[dict]:
    """
    One handle between each pair of consecutive ring positions, placed at
    the middle of the on-screen segment: both ends are projected to pixels,
    averaged, and the result unprojected. There is no segment from the last
    position back to the first.
    """
    ring = edit_ring(geometry)
    if ring is None:
        return []

    midpoints = []
    for j in range(len(ring) - 1):
        pt_a = projector.project((ring[j][0], ring[j][1]))
        pt_b = projector.project((ring[j + 1][0], ring[j + 1][1]))
        mid = projector.unproject(((pt_a.x + pt_b.x) / 2, (pt_a.y + pt_b.y) / 2))
        midpoints.append(handle_feature(META_MIDPOINT, j + 1, (mid.lng, mid.lat), parent))
    return midpoints


def feature_collection(features: list[dict]) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}
