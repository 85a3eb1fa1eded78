# mapdraft/config.py
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mapdraft.errors import ConfigError

log = logging.getLogger(__name__)

CONFIG_FILENAME = "mapdraft.json"

DUPLICATE_ALLOW = "allow"
DUPLICATE_REJECT = "reject"
DUPLICATE_REPLACE = "replace"
VALID_DUPLICATE_POLICIES = (DUPLICATE_ALLOW, DUPLICATE_REJECT, DUPLICATE_REPLACE)

ENV_DUPLICATE_POLICY = "MAPDRAFT_DUPLICATE_POLICY"
ENV_EMIT_VERTICES = "MAPDRAFT_EMIT_VERTICES"
ENV_EMIT_MIDPOINTS = "MAPDRAFT_EMIT_MIDPOINTS"


def find_config_path(start: Path | None = None) -> Path | None:
    """Looks for mapdraft.json walking up from start (or the CWD)."""
    start = (start or Path.cwd()).resolve()
    for p in (start, *start.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


@dataclass
class DraftStoreConfig:
    """Behaviour switches for DraftStore."""

    # allow: plain append (drawIds may repeat)
    # reject: add() raises DuplicateDrawIdError
    # replace: the incoming draft takes the slot of the tracked one
    duplicate_policy: str = DUPLICATE_ALLOW

    # Draft kinds whose edges get no midpoint handles.
    no_midpoint_kinds: tuple[str, ...] = field(default_factory=lambda: ("square",))

    emit_vertices: bool = True
    emit_midpoints: bool = True

    def __post_init__(self):
        if self.duplicate_policy not in VALID_DUPLICATE_POLICIES:
            raise ConfigError(
                f"duplicate_policy '{self.duplicate_policy}' invalid. "
                f"Expected one of: {', '.join(VALID_DUPLICATE_POLICIES)}"
            )
        self.no_midpoint_kinds = tuple(self.no_midpoint_kinds)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DraftStoreConfig":
        """Builds a config from loosely typed data. Bad values fall back to defaults."""
        out = cls()
        if not isinstance(data, dict):
            log.warning("Config data is not a mapping (%r); using defaults", type(data).__name__)
            return out

        out.duplicate_policy = _coerce_policy(data.get("duplicate_policy"), out.duplicate_policy)
        out.no_midpoint_kinds = _coerce_kinds(data.get("no_midpoint_kinds"), out.no_midpoint_kinds)
        out.emit_vertices = _coerce_bool(data.get("emit_vertices"), out.emit_vertices)
        out.emit_midpoints = _coerce_bool(data.get("emit_midpoints"), out.emit_midpoints)
        return out

    @classmethod
    def load(cls, path: str | os.PathLike | None = None) -> "DraftStoreConfig":
        """
        Reads the JSON config file, then applies environment overrides.
        A missing or unreadable file yields the defaults.
        """
        p = Path(path) if path is not None else find_config_path()
        data: dict[str, Any] = {}
        if p is not None:
            try:
                raw = json.loads(p.read_text(encoding="utf-8"))
                if isinstance(raw, dict):
                    data = raw
                else:
                    log.warning("Ignoring %s: top-level value is not an object", p)
            except (OSError, ValueError) as e:
                log.warning("Could not read %s: %s", p, e)

        env_policy = os.environ.get(ENV_DUPLICATE_POLICY)
        if env_policy:
            data["duplicate_policy"] = env_policy
        env_vertices = os.environ.get(ENV_EMIT_VERTICES)
        if env_vertices:
            data["emit_vertices"] = env_vertices
        env_midpoints = os.environ.get(ENV_EMIT_MIDPOINTS)
        if env_midpoints:
            data["emit_midpoints"] = env_midpoints

        config = cls.from_dict(data)
        log.debug("Loaded draft store config from %s: %s", p, config)
        return config


def _coerce_policy(v: Any, default: str) -> str:
    if v is None:
        return default
    s = str(v).strip().lower()
    if s in VALID_DUPLICATE_POLICIES:
        return s
    log.warning("Unknown duplicate_policy %r; using %r", v, default)
    return default


def _coerce_kinds(v: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if v is None:
        return default
    if isinstance(v, str):
        return (v,)
    if isinstance(v, (list, tuple)) and all(isinstance(k, str) for k in v):
        return tuple(v)
    log.warning("no_midpoint_kinds must be a list of strings, got %r", v)
    return default


def _coerce_bool(v: Any, default: bool) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    log.warning("Expected a boolean, got %r; using %r", v, default)
    return default
