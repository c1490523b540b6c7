"""Affine transform codec."""

from slidecodec.geometry.transform import (
    build_matrix,
    compose,
    decompose,
    has_shear,
    is_degenerate,
    normalize_rotation,
    resolve_transform,
    to_points,
)

__all__ = [
    "build_matrix",
    "compose",
    "decompose",
    "has_shear",
    "is_degenerate",
    "normalize_rotation",
    "resolve_transform",
    "to_points",
]
