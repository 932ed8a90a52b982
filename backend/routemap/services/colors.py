"""
Route Map Backend: Route Color Derivation
==========================================

What:  Deterministic display color for a route.
How:   Palette mode. A 31x rolling hash over the seed's UTF-16 code units,
       wrapped to a signed 32-bit integer after every step, indexes a fixed
       20-color palette by `abs(h) % 20`.

The hash matches the one the mapping frontend runs in JavaScript
(`h = (h << 5) - h + charCode; h |= 0`), hence the UTF-16 code units and the
explicit 32-bit wrap. The color is never stored: the same (camp, full_code)
always renders the same color, whatever order rows come back in.
"""

from typing import Any, Optional, Sequence

COLOR_PALETTE: Sequence[str] = (
    "#00C2FF", "#FF4D6D", "#FFD166", "#06D6A0", "#A78BFA",
    "#F97316", "#22C55E", "#E11D48", "#3B82F6", "#F59E0B",
    "#14B8A6", "#8B5CF6", "#84CC16", "#EC4899", "#0EA5E9",
    "#EF4444", "#10B981", "#FBBF24", "#6366F1", "#FB7185",
)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _utf16_units(seed: str):
    data = seed.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def seed_hash(seed: Optional[str]) -> int:
    """Signed 32-bit rolling hash of `seed` (0 for an empty seed)."""
    h = 0
    for unit in _utf16_units(seed or ""):
        h = _to_int32((h << 5) - h + unit)
    return h


def color_for(seed: Optional[str]) -> str:
    """Palette color for an arbitrary seed. Empty or None seeds are valid."""
    return COLOR_PALETTE[abs(seed_hash(seed)) % len(COLOR_PALETTE)]


def route_seed(camp: Any, full_code: Any) -> str:
    camp_text = "" if camp is None else str(camp).strip()
    code_text = "" if full_code is None else str(full_code).strip()
    return f"{camp_text}:{code_text}"


def route_color(camp: Any, full_code: Any) -> str:
    """Color of the route identified by (camp, full_code)."""
    return color_for(route_seed(camp, full_code))
