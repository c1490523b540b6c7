"""Affine transform codec.

Composes nested-group matrices into world space, decomposes a matrix plus an
unscaled base size into top-left geometry (x, y, w, h, rotation, flips) and
rebuilds a matrix from that geometry.

Matrix convention (page y axis points down, rotation is clockwise)::

    | scale_x  shear_x  translate_x |
    | shear_y  scale_y  translate_y |

A rotated, scaled element is ``R(theta) . F . S`` where ``F`` holds the flips
and ``S`` the width/height scale factors. Translation is wherever the element
origin lands; the rendered box rotates about its own centre.
"""

import logging
import math
from typing import Optional

from slidecodec.dsl.schema import AffineTransform, BaseSize, ElementGeometry
from slidecodec.dsl.source import RawTransform
from slidecodec.units import EMU_PER_PT

logger = logging.getLogger(__name__)

_MATRIX_FIELDS = ("scale_x", "scale_y", "shear_x", "shear_y", "translate_x", "translate_y")

# Rotation is rounded to this many decimals to absorb float noise
ROTATION_DIGITS = 2

DEGENERATE_EPSILON = 1e-12


def resolve_transform(raw: Optional[RawTransform]) -> tuple[AffineTransform, bool]:
    """Turn a received transform into a full matrix.

    The service omits any field whose value is zero, so a rotated element can
    arrive without ``scaleX`` at all. With no field present the transform is
    identity; with any field present every omitted field is 0.

    Args:
        raw: The transform as received, or None.

    Returns:
        Tuple of (matrix, malformed). ``malformed`` is True when a value was
        not finite and had to be replaced by 0. Translation is in EMUs.
    """
    if raw is None:
        return AffineTransform.identity(), False

    values = {name: getattr(raw, name) for name in _MATRIX_FIELDS}
    if all(value is None for value in values.values()):
        return AffineTransform.identity(), False

    malformed = False
    resolved: dict[str, float] = {}
    for name, value in values.items():
        if value is None:
            resolved[name] = 0.0
        elif not math.isfinite(value):
            resolved[name] = 0.0
            malformed = True
        else:
            resolved[name] = float(value)

    if raw.unit == "PT":
        resolved["translate_x"] *= EMU_PER_PT
        resolved["translate_y"] *= EMU_PER_PT

    return AffineTransform(**resolved), malformed


def compose(parent: AffineTransform, child: AffineTransform) -> AffineTransform:
    """Return ``parent . child`` (apply child first, then parent)."""
    return AffineTransform(
        scale_x=parent.scale_x * child.scale_x + parent.shear_x * child.shear_y,
        shear_x=parent.scale_x * child.shear_x + parent.shear_x * child.scale_y,
        shear_y=parent.shear_y * child.scale_x + parent.scale_y * child.shear_y,
        scale_y=parent.shear_y * child.shear_x + parent.scale_y * child.scale_y,
        translate_x=parent.translate_x
        + parent.scale_x * child.translate_x
        + parent.shear_x * child.translate_y,
        translate_y=parent.translate_y
        + parent.shear_y * child.translate_x
        + parent.scale_y * child.translate_y,
    )


def normalize_rotation(degrees: float) -> float:
    """Normalize to [0, 360) and round away float noise (269.9999 -> 270)."""
    rotation = round(degrees % 360.0, ROTATION_DIGITS)
    if rotation >= 360.0:
        rotation = 0.0
    return rotation + 0.0


def decompose(matrix: AffineTransform, base_size: BaseSize) -> ElementGeometry:
    """Recover top-left geometry from a matrix and the unscaled base size.

    Scale factors come from the column lengths so rotation moving values into
    the shear slots does not shrink the element. A negative determinant means
    exactly one axis is mirrored; which one is not recoverable from the matrix
    alone, so it is always reported as ``flip_h``.

    The returned x/y/w/h are in the base size's units (EMUs for source data).
    """
    scale_w = math.hypot(matrix.scale_x, matrix.shear_y)
    scale_h = math.hypot(matrix.shear_x, matrix.scale_y)
    flip_h = matrix.determinant < 0

    # Remove the reported horizontal flip (negate the first column) first
    if flip_h:
        rotation_rad = math.atan2(-matrix.shear_y, -matrix.scale_x)
    else:
        rotation_rad = math.atan2(matrix.shear_y, matrix.scale_x)

    base_w = base_size.width
    base_h = base_size.height
    w = base_w * scale_w
    h = base_h * scale_h

    # Box centre is fixed under rotation and flips
    center_x, center_y = matrix.apply(base_w / 2.0, base_h / 2.0)

    return ElementGeometry(
        x=center_x - w / 2.0,
        y=center_y - h / 2.0,
        w=w,
        h=h,
        rotation=normalize_rotation(math.degrees(rotation_rad)),
        flip_h=flip_h,
        flip_v=False,
    )


def build_matrix(
    x: float,
    y: float,
    rotation: float,
    w: float,
    h: float,
    flip_h: bool = False,
    flip_v: bool = False,
    base_w: Optional[float] = None,
    base_h: Optional[float] = None,
) -> AffineTransform:
    """Build the matrix placing a w x h box at (x, y) rotated about its centre.

    Without a base size the element is created at w x h and the scale factors
    are 1; with one, they are ``w / base_w`` and ``h / base_h``. With no flips
    the translation reduces to::

        translate_x = x + hw(1 - cos) + hh * sin
        translate_y = y + hh(1 - cos) - hw * sin
    """
    theta = math.radians(rotation)
    cos = math.cos(theta)
    sin = math.sin(theta)

    box_w = base_w if base_w else w
    box_h = base_h if base_h else h
    sx = w / box_w if box_w else 1.0
    sy = h / box_h if box_h else 1.0
    if flip_h:
        sx = -sx
    if flip_v:
        sy = -sy

    scale_x = cos * sx
    shear_x = -sin * sy
    shear_y = sin * sx
    scale_y = cos * sy

    # Keep the box centre at (x + w/2, y + h/2)
    half_bw = box_w / 2.0
    half_bh = box_h / 2.0
    translate_x = x + w / 2.0 - (scale_x * half_bw + shear_x * half_bh)
    translate_y = y + h / 2.0 - (shear_y * half_bw + scale_y * half_bh)

    return AffineTransform(
        scale_x=scale_x,
        scale_y=scale_y,
        shear_x=shear_x,
        shear_y=shear_y,
        translate_x=translate_x,
        translate_y=translate_y,
    )


def to_points(matrix: AffineTransform) -> AffineTransform:
    """Re-unitize a known EMU matrix for the mutation API.

    Scale and shear are dimensionless and pass through untouched; only the
    translation changes units.
    """
    return matrix.model_copy(
        update={
            "translate_x": matrix.translate_x / EMU_PER_PT,
            "translate_y": matrix.translate_y / EMU_PER_PT,
        }
    )


def has_shear(matrix: AffineTransform, eps: float = 0.001) -> bool:
    """True when the linear part is not rotation/scale/flip only.

    A rotation keeps the two columns perpendicular; true shear does not.
    """
    col_x = math.hypot(matrix.scale_x, matrix.shear_y)
    col_y = math.hypot(matrix.shear_x, matrix.scale_y)
    if col_x == 0 or col_y == 0:
        return False
    dot = matrix.scale_x * matrix.shear_x + matrix.shear_y * matrix.scale_y
    return abs(dot) / (col_x * col_y) > eps


def is_degenerate(matrix: AffineTransform) -> bool:
    """A zero determinant collapses the element to a line or point."""
    return abs(matrix.determinant) < DEGENERATE_EPSILON
