"""
Normalisation of upstream counter payloads to plain integers.

Upstream counters are third-party and undocumented, so a payload may arrive
as a number, a numeric string, or a JSON object carrying the count under one
of several keys. Decoding tries each known shape in order and falls back to 0
instead of raising.
"""

import math
import re
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

DEFAULT_COUNT_KEYS = ("count", "leads", "value", "total")
SUBSCRIPTION_KEYS = ("count", "subscriptions", "value", "total")
WAITLIST_KEYS = ("remaining_count", "remaining", "count", "waitlist", "value", "total")

LAKH = 100_000
MILLION = 1_000_000
THOUSAND = 1_000

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+))")


class PayloadShape(str, Enum):
    NUMBER = "number"
    STRING = "string"
    NESTED_OBJECT = "nested_object"
    OBJECT = "object"
    UNKNOWN = "unknown"


def parse_int_string(text: str) -> Optional[int]:
    """Parse the leading integer of a string, ignoring thousands separators.

    '2631' -> 2631, '1,234' -> 1234, '12abc' -> 12, 'abc' -> None
    """
    match = _INT_PREFIX.match(text.replace(",", ""))
    if not match:
        return None
    return int(match.group(1))


def _leading_float(text: str) -> Optional[float]:
    match = _FLOAT_PREFIX.match(text)
    if not match:
        return None
    return float(match.group(1))


def _decode_number(payload: Any) -> Optional[int]:
    if isinstance(payload, bool) or not isinstance(payload, (int, float)):
        return None
    if isinstance(payload, float) and not math.isfinite(payload):
        return None
    return int(payload)


def _decode_string(payload: Any) -> Optional[int]:
    if not isinstance(payload, str):
        return None
    return parse_int_string(payload)


def _coerce(value: Any) -> int:
    if isinstance(value, str):
        parsed = _decode_string(value)
    else:
        parsed = _decode_number(value)
    return parsed if parsed is not None else 0


def _probe_keys(obj: dict, keys: Sequence[str]) -> Optional[int]:
    for key in keys:
        if obj.get(key) is not None:
            return _coerce(obj[key])
    return None


def decode_count(payload: Any, keys: Sequence[str] = DEFAULT_COUNT_KEYS) -> Tuple[PayloadShape, int]:
    """Decode a payload against the known shapes, first match wins.

    Returns the matched shape together with the count; UNKNOWN carries 0.
    """
    decoders: List[Tuple[PayloadShape, Callable[[Any], Optional[int]]]] = [
        (PayloadShape.NUMBER, _decode_number),
        (PayloadShape.STRING, _decode_string),
        # A "data" object without any known key falls through to the top-level probe
        (PayloadShape.NESTED_OBJECT,
         lambda p: _probe_keys(p["data"], keys) if isinstance(p, dict) and isinstance(p.get("data"), dict) else None),
        (PayloadShape.OBJECT, lambda p: _probe_keys(p, keys) if isinstance(p, dict) else None),
    ]
    for shape, decoder in decoders:
        value = decoder(payload)
        if value is not None:
            return shape, value
    return PayloadShape.UNKNOWN, 0


def parse_count(payload: Any, keys: Sequence[str] = DEFAULT_COUNT_KEYS) -> int:
    """Turn any upstream payload into an integer count. Never raises."""
    return decode_count(payload, keys)[1]


def parse_downloads_string(text: Optional[str]) -> int:
    """
    Parse a store downloads label into an integer.

    Handles '10,000,000+', '1L+' (lakh), '1,00,000+', '1.5M', '50K'.
    Unit letters are checked in the order L, M, K; anything else is read as
    a plain number with comma separators.
    """
    if not text or text == "null" or not text.strip():
        return 0

    cleaned = text.replace("+", "").strip()

    for unit, multiplier in (("l", LAKH), ("m", MILLION), ("k", THOUSAND)):
        if unit in cleaned.lower():
            number = _leading_float(re.sub(f"[{unit}{unit.upper()},]", "", cleaned))
            if number is None:
                return 0
            return int(number * multiplier)

    return parse_int_string(cleaned) or 0
