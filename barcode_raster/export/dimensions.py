"""
RU: Перевод физического размера (см) и DPI в размер холста в пикселях.
EN: Physical size + resolution -> integer canvas size.

All pixel arithmetic in the pipeline rounds half up (``floor(x + 0.5)``)
so output stays byte-identical across runs and matches the original
browser tool, which used ``Math.round``.
"""

from __future__ import annotations

import math
from typing import Final, NamedTuple

__all__ = [
    "CM_PER_INCH",
    "CanvasSize",
    "round_half_up",
    "compute_canvas_px",
]

CM_PER_INCH: Final[float] = 2.54


class CanvasSize(NamedTuple):
    width: int
    height: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity (JS ``Math.round``)."""
    return int(math.floor(value + 0.5))


def compute_canvas_px(width_cm: float, height_cm: float, dpi: int) -> CanvasSize:
    """
    Compute the canvas size that prints at exactly ``width_cm`` x ``height_cm``.

    Args:
        width_cm: Physical width in centimeters.
        height_cm: Physical height in centimeters.
        dpi: Dots per inch.

    Returns:
        ``CanvasSize(round(width_cm * dpi / 2.54), round(height_cm * dpi / 2.54))``.

    Example:
        >>> compute_canvas_px(5, 3, 300)
        CanvasSize(width=591, height=354)
    """
    px_per_cm = dpi / CM_PER_INCH
    return CanvasSize(
        round_half_up(width_cm * px_per_cm),
        round_half_up(height_cm * px_per_cm),
    )
