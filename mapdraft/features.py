# mapdraft/features.py
"""
Draft features: geometries being drawn or edited on the map.

The store only relies on `draw_id`, `kind` and `get_geojson()`; the
concrete classes below are the drafts produced by the point, line,
polygon and square drawing modes.
"""
import uuid

from mapdraft.geometry import GeometryType


def _coord(value) -> list[float]:
    return [float(value[0]), float(value[1])]


class DraftFeature:
    kind = "feature"
    geometry_type: str = ""

    def __init__(self, draw_id=None, properties: dict | None = None):
        self.draw_id = draw_id if draw_id is not None else uuid.uuid4().hex
        self.properties = dict(properties or {})

    def coordinates(self):
        raise NotImplementedError

    def get_geojson(self) -> dict:
        properties = dict(self.properties)
        properties["drawId"] = self.draw_id
        properties["kind"] = self.kind
        return {
            "type": "Feature",
            "properties": properties,
            "geometry": {
                "type": self.geometry_type,
                "coordinates": self.coordinates(),
            },
        }

    def __repr__(self):
        return f"{type(self).__name__}(draw_id={self.draw_id!r})"


class DraftPoint(DraftFeature):
    kind = "point"
    geometry_type = GeometryType.POINT

    def __init__(self, coordinate, draw_id=None, properties=None):
        super().__init__(draw_id, properties)
        self.coordinate = _coord(coordinate)

    def move_to(self, coordinate) -> None:
        self.coordinate = _coord(coordinate)

    def coordinates(self):
        return list(self.coordinate)


class _VertexEditable(DraftFeature):
    """Shared vertex editing for lines and polygons (open list of positions)."""

    def __init__(self, coordinates=(), draw_id=None, properties=None):
        super().__init__(draw_id, properties)
        self.vertices = [_coord(c) for c in coordinates]

    def add_vertex(self, coordinate) -> None:
        self.vertices.append(_coord(coordinate))

    def move_vertex(self, index: int, coordinate) -> None:
        self.vertices[index] = _coord(coordinate)

    def insert_vertex(self, index: int, coordinate) -> None:
        """
        Inserts a position before `index`. A dragged midpoint handle with
        index i becomes the new vertex i.
        """
        self.vertices.insert(index, _coord(coordinate))

    def remove_vertex(self, index: int) -> None:
        del self.vertices[index]


class DraftLine(_VertexEditable):
    kind = "line"
    geometry_type = GeometryType.LINESTRING

    def coordinates(self):
        return [list(c) for c in self.vertices]


class DraftPolygon(_VertexEditable):
    kind = "polygon"
    geometry_type = GeometryType.POLYGON

    def coordinates(self):
        # stored open, rendered closed
        ring = [list(c) for c in self.vertices]
        if ring and ring[0] != ring[-1]:
            ring.append(list(ring[0]))
        return [ring]


class DraftSquare(DraftFeature):
    """Axis-aligned rectangle defined by two opposite corners."""

    kind = "square"
    geometry_type = GeometryType.POLYGON

    def __init__(self, corner, opposite=None, draw_id=None, properties=None):
        super().__init__(draw_id, properties)
        self.corner = _coord(corner)
        self.opposite = _coord(opposite if opposite is not None else corner)

    def set_corner(self, coordinate) -> None:
        """Moves the dragged corner; the anchored one stays put."""
        self.opposite = _coord(coordinate)

    def coordinates(self):
        (x0, y0), (x1, y1) = self.corner, self.opposite
        return [[[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]]
