"""Decoding of the ERP `{v, r}` tagged-value wire format.

Every field of an upstream row arrives either as a raw scalar or as an object
carrying `v` (value) and/or `r` (rendered form). All field access in the
transformers goes through `decode` so none of them need to care which shape a
given row used.
"""

import math
import re
from typing import Any, Dict, Optional, Tuple, Union

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Wire shape of a single upstream field: raw scalar or {"v": ..., "r": ...}
TaggedValue = Union[None, str, int, float, Dict[str, Any]]


def decode(field: Any) -> str:
    """Return the string value of a tagged field, or "" when there is none.

    Total over its input: never raises and never returns None.
    """
    if not field:
        return ""
    if isinstance(field, dict):
        return _part(field.get("v")) or _part(field.get("r")) or ""
    return _part(field) or ""


def _part(value: Any) -> Optional[str]:
    # Nested tagged values are unwrapped; containers other than dicts have no value
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return decode(value) or None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def decode_first(row: dict, *names: str) -> str:
    """Decode the first non-empty field among `names`."""
    for name in names:
        value = decode(row.get(name))
        if value:
            return value
    return ""


def is_true_flag(value: str) -> bool:
    """Upstream boolean columns are the literal strings "True"/"False"."""
    return value == "True"


def parse_leading_int(value: Any) -> Optional[int]:
    """Parse the leading integer of `value` the way a lenient form parser would.

    "12" -> 12, " 7abc" -> 7, 3.9 -> 3, "abc" -> None, None -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_coordinates(text: str) -> Optional[Tuple[float, float]]:
    """Parse a "latitude, longitude" string."""
    if not text or "," not in text:
        return None
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0])
        lng = float(parts[1])
    except ValueError:
        return None
    if math.isnan(lat) or math.isnan(lng):
        return None
    return lat, lng
