"""
Route Map Backend: Route Color Unit Tests
==========================================

What:  Tests for the palette hash in services/colors.py.
How:   Expected colors are computed by hand from the 31x rolling hash.

Test Strategy:
    ✅ Same seed → same color
    ✅ Hash runs over UTF-16 code units (surrogate pairs count twice)
    ✅ 32-bit wrap keeps long seeds in range
    ✅ Route seed is "camp:full_code"
"""

from routemap.services.colors import (
    COLOR_PALETTE,
    _to_int32,
    color_for,
    route_color,
    route_seed,
    seed_hash,
)


class TestSeedHash:

    def test_empty_seed_hashes_to_zero(self):
        assert seed_hash("") == 0
        assert seed_hash(None) == 0

    def test_single_character(self):
        """'a' → 97."""
        assert seed_hash("a") == 97

    def test_two_characters(self):
        """'ab' → 97 * 31 + 98."""
        assert seed_hash("ab") == 3105

    def test_surrogate_pair_hashes_both_units(self):
        """U+1F600 is 0xD83D 0xDE00 in UTF-16."""
        assert seed_hash("\U0001F600") == 0xD83D * 31 + 0xDE00

    def test_int32_wrap(self):
        assert _to_int32(2 ** 31) == -(2 ** 31)
        assert _to_int32(2 ** 32 + 5) == 5
        assert _to_int32(-1) == -1

    def test_long_seed_stays_in_int32_range(self):
        h = seed_hash("camp-with-a-very-long-name:" + "9" * 200)
        assert -(2 ** 31) <= h < 2 ** 31


class TestColorFor:

    def test_known_colors(self):
        assert color_for("a") == COLOR_PALETTE[97 % 20]
        assert color_for("ab") == COLOR_PALETTE[3105 % 20]
        assert color_for("") == COLOR_PALETTE[0]

    def test_deterministic(self):
        assert color_for("Incheon1:101") == color_for("Incheon1:101")

    def test_always_a_palette_color(self):
        for seed in ("x", "서울1:126A", "\U0001F600", "0" * 50):
            assert color_for(seed) in COLOR_PALETTE


class TestRouteColor:

    def test_route_seed_joins_camp_and_code(self):
        assert route_seed("C", "101") == "C:101"
        assert route_seed(" C ", 101) == "C:101"
        assert route_seed(None, "101") == ":101"

    def test_route_color_uses_route_seed(self):
        assert route_color("C", "101") == color_for("C:101")

    def test_same_code_in_other_camp_may_differ(self):
        """The camp is part of the seed."""
        assert seed_hash(route_seed("A", "101")) != seed_hash(route_seed("B", "101"))
