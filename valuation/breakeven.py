"""
Cash-back breakeven analysis.

Given planned spending on a card, the value of its points and the card's
net worth, find how much total annual spend is needed to reach a range of
overall return rates. Amounts here are dollars (floats), not cents.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from valuation.calculations import periods_per_year
from valuation.models import CreditFrequency

EPSILON = 1e-9
HIGH_RATE_THRESHOLD = 5
DEFAULT_TARGETS = [0, 1, 2, 3, 4, 5]


class SpendMode(str, Enum):
    LINEAR = "linear"
    FIXED = "fixed"


@dataclass
class SpendCategory:
    """
    One line of planned spending.

    Fields:
    - description: display name (e.g., "Dining")
    - multiplier: points earned per dollar
    - amount: dollars spent per period
    - frequency: billing frequency of amount (unspecified counts as annual)
    - mode: linear spend grows with total spend; fixed spend stays put
    """
    description: str
    multiplier: float
    amount: float
    frequency: CreditFrequency = CreditFrequency.ANNUAL
    mode: SpendMode = SpendMode.LINEAR

    @property
    def annual_amount(self) -> float:
        return self.amount * (periods_per_year(self.frequency) or 1)


@dataclass
class BreakevenRow:
    """
    Spend required to hit one target return rate.

    total and breakdown are None when the target cannot be reached.
    breakdown lines up with BreakevenAnalysis.headers.
    """
    target_percent: int
    total: Optional[float]
    breakdown: Optional[list[float]]


@dataclass
class BreakevenAnalysis:
    """
    Fields:
    - total_annual_spend / spend_return_rate: the plan as entered
    - current_rate: spend return plus the net worth spread over the spend (%)
    - constant_rate: set when the return rate does not depend on spend volume
    - rows: one per target rate (empty when constant_rate is set)
    """
    total_annual_spend: float
    spend_return_rate: float
    current_rate: float
    headers: list[str] = field(default_factory=list)
    rows: list[BreakevenRow] = field(default_factory=list)
    constant_rate: Optional[float] = None


def spend_rewards(category: SpendCategory, cents_per_point: float) -> float:
    """Dollar value of the points a category earns in a year."""
    return category.annual_amount * category.multiplier * cents_per_point / 100


def target_rates(current_rate: float) -> list[int]:
    """
    Return-rate targets to tabulate.

    Example:
        >>> target_rates(7.2)
        [8, 9, 10, 11, 12]
        >>> target_rates(2.0)
        [0, 1, 2, 3, 4, 5]
    """
    if current_rate > HIGH_RATE_THRESHOLD:
        start = math.ceil(current_rate)
        return [start + i for i in range(5)]
    return list(DEFAULT_TARGETS)


def required_linear_spend(numerator: float, denominator: float) -> Optional[float]:
    if abs(denominator) < EPSILON:
        return None if abs(numerator) > EPSILON else 0.0
    return numerator / denominator


def breakeven_analysis(
    spendings: Iterable[SpendCategory],
    cents_per_point: float,
    net_worth_cents: int,
    include_net_worth: bool = True,
) -> Optional[BreakevenAnalysis]:
    """
    Compute how much spend each target return rate needs.

    The card's net worth is treated as a fixed dollar reward on top of what
    the spending earns. Linear categories scale together, keeping their
    planned proportions; fixed categories stay at their planned amount.

    Args:
        spendings: Planned spend categories; categories with no positive
            amount are ignored
        cents_per_point: Value of one point in cents
        net_worth_cents: The card's net worth (see summarize_card)
        include_net_worth: Set False to look at spending rewards alone

    Returns:
        BreakevenAnalysis, or None when there is no positive spend
    """
    active = [s for s in spendings if s.amount > 0]
    if not active:
        return None

    total_spend = sum(s.annual_amount for s in active)
    total_rewards = sum(spend_rewards(s, cents_per_point) for s in active)
    spend_return_rate = total_rewards / total_spend * 100

    net_worth = net_worth_cents / 100 if include_net_worth else 0.0
    current_rate = spend_return_rate + net_worth * 100 / total_spend

    fixed = [s for s in active if s.mode == SpendMode.FIXED]
    linear = [s for s in active if s.mode != SpendMode.FIXED]
    fixed_spend = sum(s.annual_amount for s in fixed)
    fixed_rewards = sum(spend_rewards(s, cents_per_point) for s in fixed)
    linear_spend = sum(s.annual_amount for s in linear)
    linear_rewards = sum(spend_rewards(s, cents_per_point) for s in linear)
    linear_rate = linear_rewards / linear_spend if linear_spend > 0 else 0.0

    analysis = BreakevenAnalysis(
        total_annual_spend=total_spend,
        spend_return_rate=spend_return_rate,
        current_rate=current_rate,
    )

    if net_worth == 0 and fixed_spend == 0:
        analysis.constant_rate = linear_rate * 100
        return analysis

    analysis.headers = [s.description for s in active]
    for target_percent in target_rates(current_rate):
        target = target_percent / 100
        required = required_linear_spend(
            fixed_rewards + net_worth - target * fixed_spend,
            target - linear_rate,
        )
        if required is None or required < 0:
            analysis.rows.append(BreakevenRow(target_percent=target_percent, total=None, breakdown=None))
            continue

        breakdown = [
            s.annual_amount if s.mode == SpendMode.FIXED
            else required * (s.annual_amount / linear_spend if linear_spend > 0 else 0.0)
            for s in active
        ]
        analysis.rows.append(
            BreakevenRow(target_percent=target_percent, total=required + fixed_spend, breakdown=breakdown)
        )
    return analysis
