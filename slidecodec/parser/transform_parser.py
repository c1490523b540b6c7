"""Read <a:xfrm> geometry into service-shaped transforms.

OOXML stores position as an offset and extent with rotation in 60,000ths of a
degree and separate flip flags. The presentation tree wants an affine matrix
plus an unscaled size, so each xfrm becomes ``build_matrix`` over its box.
Groups additionally map their child coordinate space (``chOff``/``chExt``)
onto their own box.
"""

from dataclasses import dataclass
from typing import Any, Optional

from slidecodec.dsl.schema import AffineTransform
from slidecodec.geometry.transform import build_matrix, compose


# XML namespaces for Office Open XML
NAMESPACES = {
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
}

ROTATION_UNITS = 60000.0


@dataclass
class Xfrm:
    """Values of one <a:xfrm> (EMU, degrees)."""

    x: float = 0.0
    y: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    rotation: float = 0.0
    flip_h: bool = False
    flip_v: bool = False
    ch_x: float = 0.0
    ch_y: float = 0.0
    ch_cx: float = 0.0
    ch_cy: float = 0.0


class TransformParser:
    """Extracts matrices and sizes from PPTX shape XML."""

    def find_xfrm(self, element: Any) -> Optional[Any]:
        """Find the <a:xfrm> element in a shape's XML.

        The xfrm element can be in different locations depending on the shape type:
        - <p:sp><p:spPr><a:xfrm> for shapes, pictures and connectors
        - <p:grpSp><p:grpSpPr><a:xfrm> for groups
        - <p:graphicFrame><p:xfrm> for tables and charts
        """
        for path in ("p:spPr/a:xfrm", "p:grpSpPr/a:xfrm", "p:xfrm"):
            xfrm = element.find(path, NAMESPACES)
            if xfrm is not None:
                return xfrm
        return None

    def read(self, shape: Any) -> Xfrm:
        """Read a shape's xfrm, falling back to python-pptx's inherited position.

        Placeholders often omit <a:xfrm> and take their box from the layout;
        python-pptx resolves that inheritance for ``left``/``top``/``width``/``height``.
        """
        xfrm = self.find_xfrm(shape._element)
        if xfrm is None:
            return Xfrm(
                x=float(shape.left or 0),
                y=float(shape.top or 0),
                cx=float(shape.width or 0),
                cy=float(shape.height or 0),
                rotation=float(getattr(shape, "rotation", 0.0) or 0.0),
            )

        values = Xfrm(
            rotation=float(xfrm.get("rot", "0")) / ROTATION_UNITS,
            flip_h=xfrm.get("flipH") in ("1", "true"),
            flip_v=xfrm.get("flipV") in ("1", "true"),
        )
        off = xfrm.find("a:off", NAMESPACES)
        if off is not None:
            values.x = float(off.get("x", "0"))
            values.y = float(off.get("y", "0"))
        ext = xfrm.find("a:ext", NAMESPACES)
        if ext is not None:
            values.cx = float(ext.get("cx", "0"))
            values.cy = float(ext.get("cy", "0"))
        ch_off = xfrm.find("a:chOff", NAMESPACES)
        if ch_off is not None:
            values.ch_x = float(ch_off.get("x", "0"))
            values.ch_y = float(ch_off.get("y", "0"))
        ch_ext = xfrm.find("a:chExt", NAMESPACES)
        if ch_ext is not None:
            values.ch_cx = float(ch_ext.get("cx", "0"))
            values.ch_cy = float(ch_ext.get("cy", "0"))
        return values

    def element_matrix(self, values: Xfrm) -> AffineTransform:
        """Matrix placing the unscaled ``cx`` x ``cy`` box in its parent's space."""
        return build_matrix(
            values.x,
            values.y,
            values.rotation,
            values.cx,
            values.cy,
            values.flip_h,
            values.flip_v,
        )

    def group_matrix(self, values: Xfrm) -> AffineTransform:
        """Matrix mapping a group's child coordinates into its parent's space."""
        scale_x = values.cx / values.ch_cx if values.ch_cx else 1.0
        scale_y = values.cy / values.ch_cy if values.ch_cy else 1.0
        child_space = AffineTransform(
            scale_x=scale_x,
            scale_y=scale_y,
            translate_x=-values.ch_x * scale_x,
            translate_y=-values.ch_y * scale_y,
        )
        return compose(self.element_matrix(values), child_space)


def transform_json(matrix: AffineTransform) -> dict[str, Any]:
    return {
        "scaleX": matrix.scale_x,
        "scaleY": matrix.scale_y,
        "shearX": matrix.shear_x,
        "shearY": matrix.shear_y,
        "translateX": matrix.translate_x,
        "translateY": matrix.translate_y,
        "unit": "EMU",
    }


def size_json(width: float, height: float) -> dict[str, Any]:
    return {
        "width": {"magnitude": width, "unit": "EMU"},
        "height": {"magnitude": height, "unit": "EMU"},
    }
