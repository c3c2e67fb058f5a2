"""Tests for server-side order pricing."""

import pytest

from appforge.pricing import (
    PRICE_TOLERANCE,
    PRICING_TIERS,
    calculate_order_price,
    prices_match,
    round_half_up,
)


class TestCalculateOrderPrice:
    def test_simple_one_week_without_features_is_base_price(self):
        assert calculate_order_price("simple", "1w", []) == PRICING_TIERS["simple"]["base_price"] == 299

    @pytest.mark.parametrize("timeline,expected", [("24h", 748), ("3d", 449), ("1w", 299), ("2w", 239)])
    def test_timeline_multipliers_for_simple(self, timeline, expected):
        # 299 * 2.5 = 747.5 rounds up; 299 * 0.8 = 239.2 rounds down
        assert calculate_order_price("simple", timeline, []) == expected

    def test_addons_are_added_before_the_multiplier(self):
        # (799 + 199 + 149) * 1.8
        assert calculate_order_price("medium", "3d", ["Payment Integration", "Advanced Analytics"]) == 2065

    def test_included_features_are_not_charged(self):
        """Payment Integration is part of the complex tier."""
        with_feature = calculate_order_price("complex", "2w", ["Payment Integration"])
        assert with_feature == calculate_order_price("complex", "2w", []) == 1999

    def test_unknown_features_add_nothing(self):
        assert calculate_order_price("simple", "1w", ["Teleportation"]) == 299

    def test_unknown_complexity_raises(self):
        with pytest.raises(KeyError):
            calculate_order_price("galactic", "1w", [])


class TestPriceParity:
    def test_exact_and_within_tolerance(self):
        assert prices_match(299, 299)
        assert prices_match(299.01, 299)
        assert prices_match(298.995, 299)

    def test_outside_tolerance(self):
        assert not prices_match(299 + PRICE_TOLERANCE * 2, 299)
        assert not prices_match(1, 299)

    def test_round_half_up_matches_javascript(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(-0.5) == 0
