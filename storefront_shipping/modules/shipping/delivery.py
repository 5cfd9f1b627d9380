"""
Delivery window helpers.
"""
import re
from typing import Optional, Tuple

_RANGE_RE = re.compile(r"(\d+)\s*(?:-|a|–)\s*(\d+)")
_SINGLE_RE = re.compile(r"(\d+)")


def parse_delivery_window(text: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """Extract (min_days, max_days) from text such as "1-3 días" or "24 horas"."""
    if not text:
        return None, None
    match = _RANGE_RE.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = _SINGLE_RE.search(text)
    if match:
        days = int(match.group(1))
        if "hora" in text.lower() or "hour" in text.lower():
            days = max(1, -(-days // 24))
        return days, days
    return None, None


def clamp_window(
    min_days: Optional[int], max_days: Optional[int]
) -> Tuple[Optional[int], Optional[int]]:
    """max_days never ends up below min_days."""
    if min_days is not None and max_days is not None and max_days < min_days:
        max_days = min_days
    return min_days, max_days


def delivery_label(min_days: Optional[int], max_days: Optional[int]) -> str:
    if min_days is None or max_days is None:
        return ""
    if min_days == max_days:
        if min_days == 1:
            return "Entrega en 1 día hábil"
        return f"Entrega en {min_days} días hábiles"
    return f"Entrega en {min_days}-{max_days} días hábiles"
