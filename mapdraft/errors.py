# mapdraft/errors.py
"""Typed errors raised by the draft store and its helpers."""


class DraftStoreError(Exception):
    """Base error for the mapdraft package."""


class MalformedGeometryError(DraftStoreError, ValueError):
    """Geometry or coordinates missing, or not shaped the way the type needs."""


class DuplicateDrawIdError(DraftStoreError, KeyError):
    """A draft with the same drawId is already tracked."""

    def __init__(self, draw_ids):
        self.draw_ids = tuple(draw_ids)
        super().__init__(f"drawId already tracked: {', '.join(map(str, self.draw_ids))}")

    def __str__(self):
        return self.args[0]


class ProjectionError(DraftStoreError):
    """Screen/geographic conversion failed."""


class ConfigError(DraftStoreError, ValueError):
    """Invalid configuration value."""
