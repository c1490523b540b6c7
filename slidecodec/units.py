"""
units.py — EMU conversions and text-index units.

Source geometry arrives in EMUs (English Metric Units); the canonical
document and the mutation API speak points. Text ranges in the mutation API
are counted in UTF-16 code units, so every index computation goes through
``text_length``.
"""

from typing import Optional

EMU_PER_INCH = 914400
EMU_PER_PT = 12700

# Default page size (16:9, 10in x 5.625in) used when the source omits pageSize
DEFAULT_PAGE_WIDTH_EMU = 9144000
DEFAULT_PAGE_HEIGHT_EMU = 5143500


def emu_to_pt(emu: float) -> float:
    """Convert EMUs to points."""
    return emu / EMU_PER_PT


def pt_to_emu(pt: float) -> float:
    """Convert points to EMUs."""
    return pt * EMU_PER_PT


def dimension_to_pt(magnitude: Optional[float], unit: Optional[str]) -> Optional[float]:
    """Convert a ``{magnitude, unit}`` pair to points.

    Anything that is not explicitly ``PT`` is treated as EMU, which is what the
    presentation-reading service returns for lengths.
    """
    if magnitude is None:
        return None
    if unit == "PT":
        return float(magnitude)
    return magnitude / EMU_PER_PT


def round_pt(value: float, digits: int = 2) -> float:
    """Round a point value for the canonical document."""
    return round(value, digits) + 0.0


def text_length(text: str) -> int:
    """Length of ``text`` in UTF-16 code units (the mutation API index unit)."""
    return len(text.encode("utf-16-le")) // 2
