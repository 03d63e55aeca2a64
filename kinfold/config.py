"""Layout and session configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Mapping, Optional

ENV_PREFIX = "KINFOLD_"


class Orientation(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    RADIAL = "radial"


def _parse_orientation(raw: str) -> str:
    return Orientation(raw.strip().lower()).value


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry, zoom and timing knobs for the collapsible tree.

    Distances are in renderer units (pixels for an SVG renderer). The spouse
    offset is the distance between the centers of two partners' boxes, so a
    partnership slot is ``node_width + spouse_offset`` wide.
    """

    node_width: float = 100.0
    node_height: float = 50.0
    spouse_offset: float = 115.0
    level_height: float = 120.0
    sibling_gap: float = 40.0
    min_zoom: float = 0.3
    max_zoom: float = 3.0
    viewport_width: float = 1200.0
    viewport_height: float = 600.0
    viewport_padding: float = 40.0
    cascade_delay: float = 0.7
    max_depth: int = 64
    orientation: str = Orientation.VERTICAL.value

    def __post_init__(self) -> None:
        object.__setattr__(self, "orientation", Orientation(self.orientation).value)

    def slot_width(self, has_spouse: bool) -> float:
        if has_spouse:
            return self.node_width + self.spouse_offset
        return self.node_width

    def with_viewport(self, width: Optional[float] = None, height: Optional[float] = None) -> "LayoutConfig":
        return replace(
            self,
            viewport_width=width if width is not None else self.viewport_width,
            viewport_height=height if height is not None else self.viewport_height,
        )

    def with_orientation(self, orientation: Optional[str] = None) -> "LayoutConfig":
        if orientation is None:
            return self
        return replace(self, orientation=Orientation(orientation).value)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LayoutConfig":
        """Build a config from ``KINFOLD_<FIELD>`` environment overrides.

        ``KINFOLD_SIBLING_GAP=60`` overrides ``sibling_gap`` and so on.
        Unparsable values raise ``ValueError`` naming the variable.
        """

        environ = os.environ if environ is None else environ
        overrides = {}
        for item in fields(cls):
            key = f"{ENV_PREFIX}{item.name.upper()}"
            raw = environ.get(key)
            if raw is None or raw == "":
                continue
            caster = {"int": int, "str": _parse_orientation}.get(str(item.type), float)
            try:
                overrides[item.name] = caster(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from exc
        return cls(**overrides)


DEFAULT_CONFIG = LayoutConfig()


def default_log_level() -> str:
    return os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO")


__all__ = ["LayoutConfig", "Orientation", "DEFAULT_CONFIG", "default_log_level", "ENV_PREFIX"]
