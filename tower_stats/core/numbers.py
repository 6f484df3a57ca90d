"""
Numeric codec for the game's abbreviated-number notation.

Unit suffixes are case-sensitive:
  K=10^3  M=10^6  B=10^9  T=10^12  q=10^15  Q=10^18
  s=10^21  S=10^24  O=10^27  N=10^30  D=10^33
  aa=10^36  ab=10^39  ...  az=10^111  ba=10^114  ...  zz=10^2061

Decoding reads the mantissa as a decimal, so "2.46B" becomes exactly
2460000000 rather than the nearest binary float.
"""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

Number = Union[int, float]

PLACEHOLDER = "—"

SINGLE_SUFFIXES: dict[str, int] = {
    "K": 3,
    "M": 6,
    "B": 9,
    "T": 12,
    "q": 15,
    "Q": 18,
    "s": 21,
    "S": 24,
    "O": 27,
    "N": 30,
    "D": 33,
}

# aa = 10^36, each two-letter step adds 10^3
TWO_CHAR_BASE = 36

_ALPHABET = "abcdefghijklmnopqrstuvwxyz"
_TWO_CHAR_RE = re.compile(r"^[a-z]{2}$")
_MANTISSA_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def two_char_exponent(suffix: str) -> int:
    """Exponent of ten for a two-letter suffix ("aa" -> 36, "ab" -> 39)."""
    first = ord(suffix[0]) - ord("a")
    second = ord(suffix[1]) - ord("a")
    return TWO_CHAR_BASE + (first * 26 + second) * 3


def suffix_exponent(suffix: str) -> Optional[int]:
    """Exponent of ten for a one- or two-letter suffix, or None if unknown."""
    if len(suffix) == 1:
        return SINGLE_SUFFIXES.get(suffix)
    if _TWO_CHAR_RE.match(suffix):
        return two_char_exponent(suffix)
    return None


def _build_format_tiers() -> list[tuple[str, int]]:
    """All (suffix, threshold) pairs, highest first."""
    tiers = []
    for first in reversed(_ALPHABET):
        for second in reversed(_ALPHABET):
            suffix = first + second
            tiers.append((suffix, 10 ** two_char_exponent(suffix)))
    for suffix in ("D", "N", "O", "S", "s", "Q", "q", "T", "B", "M", "K"):
        tiers.append((suffix, 10 ** SINGLE_SUFFIXES[suffix]))
    return tiers


FORMAT_TIERS = _build_format_tiers()

# Regex fragments for values inside report text. Two-letter suffixes are
# tried first so "3.50aa" is captured whole instead of stopping at "3.50a".
NUM_SUFFIX = r"(?:[a-z]{2}|[KMBTqQsSOND])"
NUM_RE_STR = rf"([\d.]+{NUM_SUFFIX}?)"
CASH_RE_STR = rf"\$?([\d.]+{NUM_SUFFIX}?)"


def _leading_decimal(text: str) -> Optional[Decimal]:
    """Parse the leading numeric part of text, ignoring anything after it."""
    match = _MANTISSA_RE.match(text)
    if not match:
        return None
    try:
        return Decimal(match.group(0).strip())
    except InvalidOperation:
        return None


def _to_number(value: Decimal) -> Number:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def parse_number_with_suffix(text: Optional[str]) -> Optional[Number]:
    """Decode a value like "2.46B", "44.48q", "3.50aa", "365" or "$978.55M".

    Returns an int when the decoded value is integral, a float otherwise,
    and None when there is no numeric mantissa to read.

    >>> parse_number_with_suffix("2.46B")
    2460000000
    >>> parse_number_with_suffix("1.5")
    1.5
    """
    if text is None:
        return None
    cleaned = re.sub(r"[$,]", "", str(text)).strip()
    if not cleaned:
        return None

    # Two-letter suffix first: a trailing single letter could sit in the
    # same position.
    if len(cleaned) >= 3:
        last_two = cleaned[-2:]
        if _TWO_CHAR_RE.match(last_two):
            mantissa = _leading_decimal(cleaned[:-2])
            if mantissa is not None:
                return _to_number(mantissa.scaleb(two_char_exponent(last_two)))

    exponent = SINGLE_SUFFIXES.get(cleaned[-1])
    if exponent is not None:
        mantissa = _leading_decimal(cleaned[:-1])
        if mantissa is not None:
            return _to_number(mantissa.scaleb(exponent))

    mantissa = _leading_decimal(cleaned)
    if mantissa is None:
        return None
    return _to_number(mantissa)


def format_number(value: Optional[Number]) -> str:
    """Render a number in suffix notation for display ("2.46B").

    Values below 10^3 are shown as plain integers when integral, otherwise
    with two decimals.
    """
    if value is None:
        return PLACEHOLDER
    if isinstance(value, float) and not math.isfinite(value):
        return PLACEHOLDER
    if value == 0:
        return "0"

    magnitude = abs(value)
    for suffix, threshold in FORMAT_TIERS:
        if magnitude >= threshold:
            return f"{value / threshold:.2f}{suffix}"

    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"
