"""Place, scale and clip an uploaded image onto the fixed output canvas."""

import logging
import math
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps

from storefront_customizer.domain.errors import ImageProcessingFailed
from storefront_customizer.domain.placement import PlacementParams, Shape
from storefront_customizer.services.masks import generate_mask

logger = logging.getLogger(__name__)

CANVAS_SIZE = 500
_WHITE = (255, 255, 255)
_OPAQUE_BLACK = (0, 0, 0, 255)
_IMAGE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


@dataclass(frozen=True)
class CanvasLayout:
    """Where the scaled image lands on the canvas and which part is visible."""

    scaled_width: int
    scaled_height: int
    left: int
    top: int
    extract_left: int
    extract_top: int
    extract_width: int
    extract_height: int

    @property
    def paste_position(self) -> tuple[int, int]:
        """Canvas offset for the visible region."""
        return max(0, self.left), max(0, self.top)

    @property
    def is_empty(self) -> bool:
        """True when no part of the scaled image is visible."""
        return self.extract_width <= 0 or self.extract_height <= 0


def compute_layout(
    placement: PlacementParams, canvas_width: int, canvas_height: int
) -> CanvasLayout:
    """Compute the scaled size, offset and visible extract for a placement."""
    clamped = placement.clamped()
    scaled_width = _round_half_up(canvas_width * clamped.zoom)
    scaled_height = _round_half_up(canvas_height * clamped.zoom)
    center_x = _round_half_up(clamped.x / 100 * canvas_width)
    center_y = _round_half_up(clamped.y / 100 * canvas_height)
    left = _round_half_up(center_x - scaled_width / 2)
    top = _round_half_up(center_y - scaled_height / 2)

    extract_left = -left if left < 0 else 0
    extract_top = -top if top < 0 else 0
    return CanvasLayout(
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        left=left,
        top=top,
        extract_left=extract_left,
        extract_top=extract_top,
        extract_width=min(scaled_width - extract_left, canvas_width),
        extract_height=min(scaled_height - extract_top, canvas_height),
    )


def compose_canvas(
    source: bytes,
    placement: PlacementParams,
    canvas_width: int = CANVAS_SIZE,
    canvas_height: int = CANVAS_SIZE,
) -> Image.Image:
    """Return the white RGB canvas with the placed, cover-fit source image."""
    layout = compute_layout(placement, canvas_width, canvas_height)
    canvas = Image.new("RGB", (canvas_width, canvas_height), _WHITE)
    if layout.is_empty:
        return canvas

    with Image.open(BytesIO(source)) as opened:
        image = opened.convert("RGBA")
    scaled = ImageOps.fit(
        image,
        (layout.scaled_width, layout.scaled_height),
        method=Image.Resampling.LANCZOS,
        centering=(0.5, 0.5),
    )
    visible = scaled.crop(
        (
            layout.extract_left,
            layout.extract_top,
            layout.extract_left + layout.extract_width,
            layout.extract_top + layout.extract_height,
        )
    )
    canvas.paste(visible, layout.paste_position, visible)
    return canvas


def transform_image(
    source: bytes,
    placement: PlacementParams,
    canvas_width: int = CANVAS_SIZE,
    canvas_height: int = CANVAS_SIZE,
) -> bytes:
    """Return the placed canvas as PNG bytes."""
    try:
        canvas = compose_canvas(source, placement, canvas_width, canvas_height)
    except _IMAGE_ERRORS as exc:
        logger.error("Failed to transform image: %s", exc)
        raise ImageProcessingFailed(placement.shape) from exc
    return _to_png(canvas)


def apply_shape_mask(canvas: Image.Image, shape: Shape | str) -> Image.Image:
    """Clip the canvas to the shape and flatten it onto black."""
    width, height = canvas.size
    mask = generate_mask(shape, width, height)
    masked = canvas.convert("RGBA")
    masked.putalpha(mask)
    background = Image.new("RGBA", (width, height), _OPAQUE_BLACK)
    return Image.alpha_composite(background, masked)


def render_shaped_png(
    source: bytes,
    placement: PlacementParams,
    canvas_width: int = CANVAS_SIZE,
    canvas_height: int = CANVAS_SIZE,
) -> bytes:
    """Run the full pipeline and return the delivered shaped PNG."""
    try:
        canvas = compose_canvas(source, placement, canvas_width, canvas_height)
        shaped = apply_shape_mask(canvas, placement.shape)
        return _to_png(shaped)
    except _IMAGE_ERRORS as exc:
        logger.error("Failed to apply %s mask: %s", placement.shape, exc)
        raise ImageProcessingFailed(placement.shape) from exc


def _to_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
