"""
Tests for the cash-back breakeven analysis.
"""

import pytest

from valuation.breakeven import (
    SpendCategory,
    SpendMode,
    breakeven_analysis,
    required_linear_spend,
    target_rates,
)
from valuation.models import CreditFrequency


def _dining(amount: float = 1000, multiplier: float = 4) -> SpendCategory:
    return SpendCategory(description="Dining", multiplier=multiplier, amount=amount, frequency=CreditFrequency.MONTHLY)


def _rent(mode: SpendMode = SpendMode.FIXED) -> SpendCategory:
    return SpendCategory(description="Rent", multiplier=1, amount=2000, frequency=CreditFrequency.ANNUAL, mode=mode)


class TestHelpers:
    def test_unspecified_frequency_counts_once(self):
        category = SpendCategory(description="Misc", multiplier=1, amount=300, frequency=CreditFrequency.UNSPECIFIED)
        assert category.annual_amount == 300

    @pytest.mark.parametrize(
        "current_rate, expected",
        [
            (7.2, [8, 9, 10, 11, 12]),
            (5.0, [0, 1, 2, 3, 4, 5]),
            (-3.0, [0, 1, 2, 3, 4, 5]),
        ],
    )
    def test_target_rates(self, current_rate, expected):
        assert target_rates(current_rate) == expected

    def test_required_linear_spend_degenerate_cases(self):
        assert required_linear_spend(-250, 0.0) is None
        assert required_linear_spend(0.0, 0.0) == 0.0
        assert required_linear_spend(-250, -0.05) == pytest.approx(5000)


class TestBreakevenAnalysis:
    """
    Dining: $1,000 a month at 4x, points worth 1.5 cents, card net worth -$250.
    Spending returns 6%; the -$250 pulls the overall rate under 4%.
    """

    def test_no_positive_spend(self):
        assert breakeven_analysis([_dining(amount=0)], 1.5, -25000) is None
        assert breakeven_analysis([], 1.5, -25000) is None

    def test_current_rates(self):
        analysis = breakeven_analysis([_dining()], 1.5, -25000)

        assert analysis.total_annual_spend == 12000
        assert analysis.spend_return_rate == pytest.approx(6.0)
        assert analysis.current_rate == pytest.approx(6.0 - 250 * 100 / 12000)

    def test_linear_spend_rows(self):
        # Act
        analysis = breakeven_analysis([_dining()], 1.5, -25000)

        # Assert: spend S breaks even at target t when 0.06 * S - 250 = t * S
        assert analysis.constant_rate is None
        assert analysis.headers == ["Dining"]
        assert [row.target_percent for row in analysis.rows] == [0, 1, 2, 3, 4, 5]
        assert analysis.rows[0].total == pytest.approx(250 / 0.06)
        assert analysis.rows[1].total == pytest.approx(5000)
        assert analysis.rows[5].total == pytest.approx(25000)
        assert analysis.rows[5].breakdown == [pytest.approx(25000)]

    def test_unreachable_targets_have_no_total(self):
        # Arrange: points worth 1 cent, so spending returns exactly 4%
        analysis = breakeven_analysis([_dining()], 1.0, -25000)

        # Assert
        assert analysis.rows[0].total == pytest.approx(6250)
        assert analysis.rows[4].total is None
        assert analysis.rows[5].total is None
        assert analysis.rows[5].breakdown is None

    def test_fixed_spend_stays_put(self):
        analysis = breakeven_analysis([_dining(), _rent()], 1.5, -25000)

        # Rent earns $30; 0.06 * L + 30 - 250 = 0.02 * (L + 2000)
        row = analysis.rows[2]
        assert row.total == pytest.approx(6500 + 2000)
        assert row.breakdown == [pytest.approx(6500), 2000]

    def test_linear_categories_keep_their_proportions(self):
        groceries = SpendCategory(description="Groceries", multiplier=4, amount=500, frequency=CreditFrequency.MONTHLY)

        analysis = breakeven_analysis([_dining(), groceries], 1.5, -25000)

        row = analysis.rows[1]
        assert row.total == pytest.approx(5000)
        assert row.breakdown == [pytest.approx(5000 * 2 / 3), pytest.approx(5000 / 3)]

    def test_rate_is_constant_without_fixed_costs(self):
        analysis = breakeven_analysis([_dining()], 1.5, 0)

        assert analysis.constant_rate == pytest.approx(6.0)
        assert analysis.rows == []

    def test_excluding_net_worth(self):
        analysis = breakeven_analysis([_dining()], 1.5, -25000, include_net_worth=False)

        assert analysis.current_rate == pytest.approx(6.0)
        assert analysis.constant_rate == pytest.approx(6.0)

    def test_high_current_rate_moves_targets_up(self):
        analysis = breakeven_analysis([_dining()], 1.5, 10000)

        # 6% + $100 over $12,000 is about 6.83%
        assert [row.target_percent for row in analysis.rows] == [7, 8, 9, 10, 11]
        assert analysis.rows[0].total == pytest.approx(100 / 0.01)
