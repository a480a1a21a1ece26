"""Arrest Map Backend — Choropleth Color Scale

Green -> yellow -> red, two linear segments, matching the legend gradient.
"""

import math

RGB = tuple[int, int, int]

NO_DATA_COLOR: RGB = (226, 232, 240)   # #e2e8f0
GREEN: RGB = (72, 187, 120)            # #48bb78
YELLOW: RGB = (236, 201, 75)           # #ecc94b
RED: RGB = (245, 101, 101)             # #f56565


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _lerp(start: RGB, end: RGB, t: float) -> RGB:
    return tuple(_round_half_up(a + (b - a) * t) for a, b in zip(start, end))


def color(count: int, max_count: int) -> RGB:
    """Fill color for `count` on a scale topping out at `max_count`."""
    if count <= 0:
        return NO_DATA_COLOR

    ratio = count / max(max_count, 1)
    ratio = min(max(ratio, 0.0), 1.0)

    if ratio <= 0.5:
        return _lerp(GREEN, YELLOW, ratio * 2)
    return _lerp(YELLOW, RED, (ratio - 0.5) * 2)


def rgb_string(rgb: RGB) -> str:
    r, g, b = rgb
    return f"rgb({r}, {g}, {b})"


def to_hex(rgb: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


def legend(max_count: int) -> dict:
    return {
        "low": 0,
        "high": max(max_count, 1),
        "colors": [to_hex(GREEN), to_hex(YELLOW), to_hex(RED)],
        "noData": to_hex(NO_DATA_COLOR),
    }
