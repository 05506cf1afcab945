"""Placement parameters for positioning an image on the canvas."""

import math
from dataclasses import dataclass
from enum import StrEnum

from storefront_customizer.domain.errors import InvalidShapeError, ValidationError

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
MIN_PERCENT = 0.0
MAX_PERCENT = 100.0


class Shape(StrEnum):
    """Supported clip shapes."""

    CIRCLE = "circle"
    HEART = "heart"
    RECTANGLE = "rectangle"

    @classmethod
    def parse(cls, raw: object) -> "Shape":
        """Parse a shape name case-insensitively."""
        if isinstance(raw, Shape):
            return raw
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("shape is required")
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise InvalidShapeError(raw) from None


@dataclass(frozen=True)
class PlacementParams:
    """Center-based placement of the source image on the output canvas."""

    x: float
    y: float
    zoom: float
    shape: Shape

    def clamped(self) -> "PlacementParams":
        """Return a copy with every value lowered into its allowed range."""
        return PlacementParams(
            x=_clamp(self.x, MIN_PERCENT, MAX_PERCENT),
            y=_clamp(self.y, MIN_PERCENT, MAX_PERCENT),
            zoom=_clamp(self.zoom, MIN_ZOOM, MAX_ZOOM),
            shape=self.shape,
        )


def parse_placement(
    x: object, y: object, zoom: object, shape: object
) -> PlacementParams:
    """Build clamped placement params from raw form values."""
    return PlacementParams(
        x=_parse_number("x", x),
        y=_parse_number("y", y),
        zoom=_parse_number("zoom", zoom),
        shape=Shape.parse(shape),
    ).clamped()


def _parse_number(field: str, raw: object) -> float:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"Missing required field: {field}")
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid number for {field}")
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number for {field}") from None
    if math.isnan(value):
        raise ValidationError(f"Invalid number for {field}")
    return value


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
