"""
Route Map Backend: Field Normalizer
====================================

What:  Small pure helpers that coerce query/body values and stored columns
       into predictable Python values.
How:   Every helper is total: bad input maps to None (or an empty key),
       never to an exception. A malformed polygon string must not fail a
       whole listing.
Who:   Request schemas (before-validators), the enrichment pipeline, and the
       camp/vendor services.

Business numbers:
    Korean business registration numbers are stored inconsistently
    (`123-45-67890`, `1234567890`, or with stray spaces). The canonical form
    written by this backend is the hyphenated `ddd-dd-ddddd` form; lookups
    match every variant so legacy rows still resolve.
"""

import json
import logging
import math
import re
from typing import Any, Optional, Set

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D+")


def clean_str(value: Any) -> Optional[str]:
    """
    Trim and coerce a scalar to a string.

    None, empty and whitespace-only values are treated as absent (None).
    Numbers are converted (`101` → `"101"`); booleans and containers are
    not scalars a caller meant as text and are treated as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_json_field(value: Any) -> Any:
    """
    Parse a field that may be a native structure or JSON text.

    Strings are decoded; a decode failure yields None. Anything else
    (list, dict, None) passes through untouched.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError as e:
        logger.debug("Discarding unparseable JSON field: %s", e)
        return None


def to_float(value: Any) -> Optional[float]:
    """Parse to float; empty, invalid, NaN and infinite values become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def lookup_key(value: Any) -> str:
    """Join key for name-based lookups: trimmed and lowercased."""
    text = clean_str(value)
    return text.lower() if text else ""


# ══════════════════════════════════════════════════════════════════════════
# Business numbers
# ══════════════════════════════════════════════════════════════════════════

def business_number_digits(value: Any) -> str:
    text = clean_str(value)
    if not text:
        return ""
    return _NON_DIGITS.sub("", text)


def normalize_business_number(value: Any) -> Optional[str]:
    """
    Canonical stored form of a business number.

    10-digit numbers become `ddd-dd-ddddd`; anything else is returned
    trimmed, as given, since its format cannot be inferred.
    """
    text = clean_str(value)
    if not text:
        return None
    digits = _NON_DIGITS.sub("", text)
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:5]}-{digits[5:]}"
    return text


def business_number_variants(value: Any) -> Set[str]:
    """Every form under which a business number may have been stored."""
    text = clean_str(value)
    if not text:
        return set()
    variants = {text, normalize_business_number(text)}
    digits = business_number_digits(text)
    if digits:
        variants.add(digits)
    return {v for v in variants if v}
