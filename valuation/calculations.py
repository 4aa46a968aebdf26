"""
Credit and benefit value calculations.

Pure functions: no I/O, no errors. Missing numeric fields count as zero.
All amounts are integer cents.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional, TypeVar

from valuation.models import (
    Credit,
    CreditCard,
    CreditFrequency,
    CustomAdjustment,
    CustomValue,
    OtherBenefit,
    UserCardValuation,
    ValuationProfile,
)

T = TypeVar("T")


PERIODS_PER_YEAR = {
    CreditFrequency.UNSPECIFIED: 0,
    CreditFrequency.ANNUAL: 1,
    CreditFrequency.SEMI_ANNUAL: 2,
    CreditFrequency.QUARTERLY: 4,
    CreditFrequency.MONTHLY: 12,
}


def periods_per_year(frequency: Optional[CreditFrequency]) -> int:
    """
    Number of billing periods in a year for a frequency.

    Example:
        >>> periods_per_year(CreditFrequency.QUARTERLY)
        4
        >>> periods_per_year(None)
        0
    """
    if frequency is None:
        return 0
    try:
        return PERIODS_PER_YEAR.get(CreditFrequency(frequency), 0)
    except ValueError:
        return 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer cent, halves away from zero. inf and nan round to 0."""
    if not math.isfinite(value):
        return 0
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def first_resolved(*candidates: Callable[[], Optional[T]]) -> Optional[T]:
    """
    Ordered fallback: evaluate candidates in order and return the first
    result that is not None. Later candidates are not evaluated.

    Example:
        >>> first_resolved(lambda: None, lambda: 5, lambda: 1 / 0)
        5
    """
    for candidate in candidates:
        result = candidate()
        if result is not None:
            return result
    return None


def _scaled(base_cents: Optional[int], proportion: Optional[float]) -> Optional[int]:
    if proportion is None:
        return None
    if base_cents is None:
        return 0
    return round_half_up(base_cents * proportion)


def raw_annual_cents(credit: Credit) -> int:
    """
    Undiscounted annual face value of a credit.

    Per-period overrides replace the default face value for their period;
    when a period repeats the later entry wins. Overrides with a missing
    period or value are skipped.

    Args:
        credit: Catalog credit

    Returns:
        Annual face value in cents (0 when the frequency is unspecified)
    """
    periods = periods_per_year(credit.frequency)
    if not periods:
        return 0

    default_cents = credit.default_period_value_cents or 0
    if not credit.overrides:
        return default_cents * periods

    by_period: dict[int, int] = {}
    for override in credit.overrides:
        if override.period is not None and override.value_cents is not None:
            by_period[override.period] = override.value_cents

    return sum(by_period.get(p, default_cents) for p in range(1, periods + 1))


def _resolve_value(
    override: Optional[CustomValue],
    base_cents: Optional[int],
    default_cents: Optional[int],
    default_proportion: Optional[float],
) -> int:
    # user cents -> user proportion -> catalog cents -> catalog proportion -> 0
    resolved = first_resolved(
        lambda: override.cents if override else None,
        lambda: _scaled(base_cents, override.proportion) if override else None,
        lambda: default_cents,
        lambda: _scaled(base_cents, default_proportion),
    )
    return resolved if resolved is not None else 0


def credit_override(credit: Credit, valuation: Optional[UserCardValuation]) -> Optional[CustomValue]:
    if valuation is None:
        return None
    return valuation.credit_valuations.get(credit.credit_id)


def benefit_override(benefit: OtherBenefit, valuation: Optional[UserCardValuation]) -> Optional[CustomValue]:
    if valuation is None:
        return None
    return valuation.other_benefit_valuations.get(benefit.benefit_id)


def default_effective_cents(credit: Credit) -> int:
    """Catalog-only effective value of a credit, ignoring any user override."""
    return _resolve_value(
        None,
        raw_annual_cents(credit),
        credit.default_effective_value_cents,
        credit.default_effective_value_proportion,
    )


def effective_credit_cents(credit: Credit, valuation: Optional[UserCardValuation] = None) -> int:
    """
    Annual value the user actually realizes from a credit.

    Args:
        credit: Catalog credit
        valuation: The user's valuation for the credit's card, if any

    Returns:
        Effective annual value in cents
    """
    return _resolve_value(
        credit_override(credit, valuation),
        raw_annual_cents(credit),
        credit.default_effective_value_cents,
        credit.default_effective_value_proportion,
    )


def effective_benefit_cents(benefit: OtherBenefit, valuation: Optional[UserCardValuation] = None) -> int:
    """
    Annual value the user actually realizes from a benefit.

    Benefits have no period structure, so a proportion scales the benefit's
    own catalog cents. Without catalog cents a proportion resolves to 0.
    """
    return _resolve_value(
        benefit_override(benefit, valuation),
        benefit.default_effective_value_cents,
        benefit.default_effective_value_cents,
        benefit.default_effective_value_proportion,
    )


def adjustment_annual_cents(adjustment: CustomAdjustment) -> int:
    return (adjustment.value_cents or 0) * periods_per_year(adjustment.frequency)


def card_valuation_for(card: CreditCard, profile: Optional[ValuationProfile]) -> Optional[UserCardValuation]:
    if profile is None:
        return None
    return profile.card_valuations.get(card.card_id)


def net_worth_cents(card: CreditCard, profile: Optional[ValuationProfile] = None) -> int:
    """
    Net annual worth of a card for a user.

    Sum of effective credit values plus annualized custom adjustments, minus
    the annual fee. Benefits are not included.

    Example:
        Annual fee $95, one credit worth $60, a $1/month custom adjustment:
        6000 + 1200 - 9500 = -2300
    """
    valuation = card_valuation_for(card, profile)

    credits_total = sum(effective_credit_cents(credit, valuation) for credit in card.credits)
    adjustments_total = 0
    if valuation is not None:
        adjustments_total = sum(adjustment_annual_cents(adj) for adj in valuation.custom_adjustments)

    return credits_total + adjustments_total - (card.annual_fee_cents or 0)
