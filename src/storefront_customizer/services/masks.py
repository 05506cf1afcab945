"""Alpha masks for the supported clip shapes."""

from PIL import Image, ImageDraw

from storefront_customizer.domain.placement import Shape

RECTANGLE_PADDING_RATIO = 0.08
RECTANGLE_CORNER_RADIUS = 10

# Heart outline in a 100x100 view box: a start point followed by cubic segments.
_HEART_START = (50.0, 90.0)
_HEART_CURVES = (
    ((25.0, 75.0), (10.0, 60.0), (10.0, 45.0)),
    ((10.0, 30.0), (20.0, 20.0), (30.0, 20.0)),
    ((38.0, 20.0), (45.0, 25.0), (50.0, 35.0)),
    ((55.0, 25.0), (62.0, 20.0), (70.0, 20.0)),
    ((80.0, 20.0), (90.0, 30.0), (90.0, 45.0)),
    ((90.0, 60.0), (75.0, 75.0), (50.0, 90.0)),
)
_HEART_VIEWBOX = 100.0
_CURVE_STEPS = 48


def generate_mask(shape: Shape | str, width: int, height: int) -> Image.Image:
    """Return an `L` mask where 255 marks pixels inside the shape."""
    resolved = Shape.parse(shape)
    mask = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(mask)
    if resolved is Shape.CIRCLE:
        radius = min(width, height) / 2
        cx, cy = width / 2, height / 2
        draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=255)
    elif resolved is Shape.HEART:
        draw.polygon(_heart_polygon(width, height), fill=255)
    else:
        padding = min(width, height) * RECTANGLE_PADDING_RATIO
        draw.rounded_rectangle(
            (padding, padding, width - padding, height - padding),
            radius=RECTANGLE_CORNER_RADIUS,
            fill=255,
        )
    return mask


def _heart_polygon(width: int, height: int) -> list[tuple[float, float]]:
    """Flatten the heart path and fit it centered into width x height."""
    scale = min(width, height) / _HEART_VIEWBOX
    offset_x = (width - _HEART_VIEWBOX * scale) / 2
    offset_y = (height - _HEART_VIEWBOX * scale) / 2
    points = [_HEART_START]
    current = _HEART_START
    for control_1, control_2, end in _HEART_CURVES:
        points.extend(_cubic_points(current, control_1, control_2, end))
        current = end
    return [(offset_x + px * scale, offset_y + py * scale) for px, py in points]


def _cubic_points(
    start: tuple[float, float],
    control_1: tuple[float, float],
    control_2: tuple[float, float],
    end: tuple[float, float],
) -> list[tuple[float, float]]:
    points = []
    for step in range(1, _CURVE_STEPS + 1):
        t = step / _CURVE_STEPS
        u = 1 - t
        a, b, c, d = u**3, 3 * u * u * t, 3 * u * t * t, t**3
        points.append(
            (
                a * start[0] + b * control_1[0] + c * control_2[0] + d * end[0],
                a * start[1] + b * control_1[1] + c * control_2[1] + d * end[1],
            )
        )
    return points
