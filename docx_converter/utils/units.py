"""
Unit conversions used by WML and HTML rendering.

Word measures lengths in twips (1/20 pt), half-points, eighths of a point
and EMU (914400 per inch); HTML works in CSS pixels at 96 DPI.
"""

from typing import Optional

EMU_PER_PIXEL = 9525
TWIPS_PER_POINT = 20


def format_number(value: float) -> str:
    """Format a CSS number without a trailing ``.0``."""
    rounded = round(float(value), 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


def twips_to_pt(twips: float) -> float:
    return twips / TWIPS_PER_POINT


def half_points_to_pt(half_points: float) -> float:
    return half_points / 2


def eighths_to_pt(eighths: float) -> float:
    return eighths / 8


def emu_to_px(emu: float) -> float:
    return emu / EMU_PER_PIXEL


def px_to_emu(px: float) -> int:
    return int(round(px * EMU_PER_PIXEL))


def parse_css_length_px(value: Optional[str]) -> Optional[float]:
    """
    Parse a CSS/HTML length into pixels.

    Accepts bare numbers (HTML ``width``/``height`` attributes) and ``px``,
    ``pt``, ``in``, ``cm`` and ``mm`` suffixes; percentages and unknown units
    return ``None``.
    """
    if value is None:
        return None
    token = str(value).strip().lower()
    if not token:
        return None
    factors = {"px": 1.0, "pt": 96 / 72, "in": 96.0, "cm": 96 / 2.54, "mm": 96 / 25.4}
    for suffix, factor in factors.items():
        if token.endswith(suffix):
            number = token[: -len(suffix)].strip()
            break
    else:
        factor = 1.0
        number = token
    try:
        result = float(number) * factor
    except ValueError:
        return None
    return result if result > 0 else None
