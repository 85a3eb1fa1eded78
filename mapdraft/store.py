# mapdraft/store.py
"""
In-memory store for the features currently being drawn or edited.

Drafts live here until their edit ends, before they are written into the
feature history. Every change re-renders: the drafts plus their vertex
and midpoint handles are published as one FeatureCollection on the
`edit.feature.update` event.
"""
import logging
import threading
from typing import Any, Callable, Iterator

from mapdraft.config import (
    DraftStoreConfig,
    DUPLICATE_REJECT,
    DUPLICATE_REPLACE,
)
from mapdraft.errors import DuplicateDrawIdError, MalformedGeometryError, ProjectionError
from mapdraft.event_bus import EDIT_END, FEATURE_UPDATE, FINISH_EDIT, NEW_EDIT, EventBus
from mapdraft.geometry import (
    feature_collection,
    midpoint_handles,
    parse_geometry,
    vertex_handles,
)
from mapdraft.projector import Projector

log = logging.getLogger(__name__)


def draw_id_from_payload(payload: Any):
    """
    drawId carried by an `edit.end` payload: payload.geometry.drawId,
    where payload and geometry may be mappings or objects.
    """
    if isinstance(payload, dict):
        geometry = payload.get("geometry")
    else:
        geometry = getattr(payload, "geometry", None)
    if geometry is None:
        return None
    if isinstance(geometry, dict):
        return geometry.get("drawId", geometry.get("draw_id"))
    return getattr(geometry, "draw_id", getattr(geometry, "drawId", None))


class DraftStore:
    def __init__(self, projector: Projector, bus: EventBus, features=None,
                 config: DraftStoreConfig | None = None,
                 on_change: Callable[[dict], None] | None = None):
        """
        projector: converts [lng, lat] <-> screen pixels (midpoint handles).
        bus: event bus the store subscribes to and publishes renders on.
        features: drafts to start with (no render is published for them).
        on_change: called with each render payload after it is published.
        """
        self._projector = projector
        self._bus = bus
        self._config = config or DraftStoreConfig()
        self._on_change = on_change
        self._lock = threading.RLock()
        self._features: list = []
        if features:
            self._features = self._merge([], list(features))

        self._subscriptions = (
            (NEW_EDIT, self._on_new_edit),
            (FINISH_EDIT, self._on_finish_edit),
            (EDIT_END, self._on_edit_end),
        )
        for name, handler in self._subscriptions:
            self._bus.subscribe(name, handler)

    @property
    def config(self) -> DraftStoreConfig:
        return self._config

    def detach(self) -> None:
        """Stops listening to the lifecycle events."""
        for name, handler in self._subscriptions:
            self._bus.unsubscribe(name, handler)

    # --- Collection -------------------------------------------------------

    def add(self, features) -> None:
        """Tracks one draft or a list of drafts, then renders."""
        incoming = list(features) if isinstance(features, (list, tuple)) else [features]
        with self._lock:
            self._features = self._merge(self._features, incoming)
            log.debug("Added %d draft(s); %d tracked", len(incoming), len(self._features))
            self.render()

    def _merge(self, current: list, incoming: list) -> list:
        policy = self._config.duplicate_policy

        if policy == DUPLICATE_REJECT:
            seen = {feat.draw_id for feat in current}
            dupes = []
            for feat in incoming:
                if feat.draw_id in seen:
                    dupes.append(feat.draw_id)
                seen.add(feat.draw_id)
            if dupes:
                raise DuplicateDrawIdError(dupes)
            return current + incoming

        if policy == DUPLICATE_REPLACE:
            merged = list(current)
            for feat in incoming:
                for i, tracked in enumerate(merged):
                    if tracked.draw_id == feat.draw_id:
                        merged[i] = feat
                        break
                else:
                    merged.append(feat)
            return merged

        return current + incoming

    def get_all(self) -> tuple:
        with self._lock:
            return tuple(self._features)

    def get_all_geojson(self) -> dict:
        with self._lock:
            return feature_collection([feat.get_geojson() for feat in self._features])

    def get(self, draw_id):
        """First tracked draft with this drawId, or None."""
        with self._lock:
            for feat in self._features:
                if feat.draw_id == draw_id:
                    return feat
            return None

    def end_edit(self, draw_id) -> None:
        """Stops tracking every draft with this drawId, then renders."""
        with self._lock:
            before = len(self._features)
            self._features = [feat for feat in self._features if feat.draw_id != draw_id]
            log.debug("end_edit(%r) removed %d draft(s)", draw_id, before - len(self._features))
            self.render()

    def clear(self) -> None:
        with self._lock:
            self._features = []
            self.render()

    def in_progress(self) -> bool:
        with self._lock:
            return len(self._features) > 0

    def __len__(self):
        return len(self.get_all())

    def __iter__(self) -> Iterator:
        return iter(self.get_all())

    def __contains__(self, draw_id):
        return self.get(draw_id) is not None

    # --- Rendering --------------------------------------------------------

    def _handles_for(self, feat, geojson: dict) -> tuple[list[dict], list[dict]]:
        geometry = parse_geometry(geojson.get("geometry") if isinstance(geojson, dict) else None)
        vertices = []
        midpoints = []
        if self._config.emit_vertices:
            vertices = vertex_handles(geometry, feat.draw_id)
        if self._config.emit_midpoints and getattr(feat, "kind", None) not in self._config.no_midpoint_kinds:
            midpoints = midpoint_handles(geometry, self._projector, feat.draw_id)
        return vertices, midpoints

    def build_render_payload(self) -> dict:
        """
        The payload render() publishes: every draft's GeoJSON, then all
        vertex handles, then all midpoint handles.

        A draft whose geometry is malformed (or cannot be projected) keeps
        its own feature but gets no handles. A draft that cannot produce
        GeoJSON at all is left out of this pass.
        """
        base: list[dict] = []
        vertices: list[dict] = []
        midpoints: list[dict] = []

        with self._lock:
            features = list(self._features)

        for feat in features:
            try:
                geojson = feat.get_geojson()
            except Exception:
                log.warning("Draft %r could not render GeoJSON; left out of this render",
                            getattr(feat, "draw_id", None), exc_info=True)
                continue
            base.append(geojson)

            try:
                feat_vertices, feat_midpoints = self._handles_for(feat, geojson)
            except (MalformedGeometryError, ProjectionError) as e:
                log.warning("Skipping handles for draft %r: %s", feat.draw_id, e)
                continue
            vertices.extend(feat_vertices)
            midpoints.extend(feat_midpoints)

        log.debug("Render: %d draft(s), %d vertex, %d midpoint handle(s)",
                  len(base), len(vertices), len(midpoints))
        return {"geojson": feature_collection(base + vertices + midpoints)}

    def render(self) -> None:
        with self._lock:
            payload = self.build_render_payload()
            self._bus.publish(FEATURE_UPDATE, payload)
            if self._on_change is not None:
                self._on_change(payload)

    # --- Lifecycle events -------------------------------------------------

    def _on_new_edit(self, payload=None) -> None:
        self.render()

    def _on_finish_edit(self, payload=None) -> None:
        self.clear()

    def _on_edit_end(self, payload=None) -> None:
        draw_id = draw_id_from_payload(payload)
        if draw_id is None:
            # nothing to remove, but listeners still get the current state
            log.warning("edit.end payload carries no drawId: %r", payload)
            self.render()
            return
        self.end_edit(draw_id)
