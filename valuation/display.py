"""
Classification, explanation and visibility rules for credits and benefits.

Given resolved values, decides the color tier shown on a chip, the tooltip
text behind it, and whether a benefit is listed at all.
"""

from typing import Optional

from valuation.calculations import (
    adjustment_annual_cents,
    benefit_override,
    credit_override,
    effective_benefit_cents,
    effective_credit_cents,
    first_resolved,
    raw_annual_cents,
)
from valuation.models import (
    AdditionalService,
    BaggageBenefit,
    CarRentalInsuranceBenefit,
    ChipColor,
    CoverageType,
    Credit,
    CustomAdjustment,
    CustomValue,
    FeeReimbursementBenefit,
    GenericBenefit,
    LoungeAccessBenefit,
    LoungeNetwork,
    OtherBenefit,
    PointPerkBenefit,
    TravelStatusBenefit,
    TravelStatusType,
    UserCardValuation,
)


CUSTOM_VALUATION_NO_REASON = "Custom valuation (no reason given)"

SUCCESS_RATIO = 0.8
WARNING_RATIO = 0.2

COLOR_RANK = {
    ChipColor.SUCCESS: 3,
    ChipColor.WARNING: 2,
    ChipColor.ERROR: 1,
    ChipColor.PRIMARY: 0,
}


# =============================================================================
# Classification
# =============================================================================

def classify(effective_cents: int, raw_cents: int, zero_tier: ChipColor = ChipColor.ERROR) -> ChipColor:
    """
    Qualitative tier for a resolved value against its raw value.

    Args:
        effective_cents: Resolved effective value
        raw_cents: Undiscounted value used as the denominator
        zero_tier: Tier for a zero effective value (ERROR for credits,
            PRIMARY for benefits)

    Returns:
        ChipColor tier

    Example:
        >>> classify(800, 1000)
        <ChipColor.SUCCESS: 'success'>
        >>> classify(200, 1000)
        <ChipColor.WARNING: 'warning'>
    """
    if effective_cents == 0:
        return zero_tier
    if raw_cents == 0:
        return ChipColor.SUCCESS if effective_cents > 0 else ChipColor.ERROR

    ratio = effective_cents / raw_cents
    if ratio >= SUCCESS_RATIO:
        return ChipColor.SUCCESS
    if ratio >= WARNING_RATIO:
        return ChipColor.WARNING
    return ChipColor.ERROR


def classify_credit(credit: Credit, valuation: Optional[UserCardValuation] = None) -> ChipColor:
    return classify(
        effective_credit_cents(credit, valuation),
        raw_annual_cents(credit),
        zero_tier=ChipColor.ERROR,
    )


def classify_benefit(benefit: OtherBenefit, valuation: Optional[UserCardValuation] = None) -> ChipColor:
    return classify(
        effective_benefit_cents(benefit, valuation),
        benefit.default_effective_value_cents or 0,
        zero_tier=ChipColor.PRIMARY,
    )


def classify_adjustment(annual_value_cents: int) -> ChipColor:
    if annual_value_cents > 0:
        return ChipColor.SUCCESS
    if annual_value_cents < 0:
        return ChipColor.ERROR
    return ChipColor.PRIMARY


def color_rank(color: ChipColor) -> int:
    """Sort weight of a tier; higher means more fully realized value."""
    return COLOR_RANK.get(color, 0)


def sort_credits(credits: list[Credit], valuation: Optional[UserCardValuation] = None) -> list[Credit]:
    """Credits ordered by color rank, then effective value, both descending."""
    return sorted(
        credits,
        key=lambda c: (
            color_rank(classify_credit(c, valuation)),
            effective_credit_cents(c, valuation),
        ),
        reverse=True,
    )


def sort_adjustments(adjustments: list[CustomAdjustment]) -> list[CustomAdjustment]:
    return sorted(adjustments, key=adjustment_annual_cents, reverse=True)


# =============================================================================
# Explanations
# =============================================================================

def _user_note(override: Optional[CustomValue]) -> Optional[str]:
    if override is None or not override.explanation:
        return None
    return override.explanation.strip() or None


def _custom_value_marker(override: Optional[CustomValue]) -> Optional[str]:
    if override is not None and (override.cents is not None or override.proportion is not None):
        return CUSTOM_VALUATION_NO_REASON
    return None


def _title_case_id(identifier: str) -> str:
    return " ".join(word.capitalize() for word in identifier.replace("-", " ").replace("_", " ").split())


def _lounge_details(lounge: LoungeAccessBenefit) -> str:
    if lounge.network == LoungeNetwork.UNSPECIFIED:
        lounge_name = "[Unknown Lounge]"
    else:
        lounge_name = _title_case_id(lounge.network.name)

    parts = [f"Access to {lounge_name}"]
    if lounge.guest_count < 0:
        parts.append("unlimited guests")
    else:
        parts.append(f"{lounge.guest_count} guest{'' if lounge.guest_count == 1 else 's'}")

    if lounge.network == LoungeNetwork.PRIORITY_PASS_SELECT:
        if AdditionalService.RESTAURANT in lounge.included_services:
            parts.append("restaurants included")
        else:
            parts.append("restaurants excluded")

    return ", ".join(parts + list(lounge.notes))


def benefit_display_details(benefit: OtherBenefit) -> str:
    """
    Human-readable description generated from a benefit's variant.

    Falls back to the title-cased benefit id when the variant carries no
    usable text.
    """
    variant = benefit.variant

    if isinstance(variant, (GenericBenefit, TravelStatusBenefit, PointPerkBenefit)) and variant.description:
        return variant.description

    if isinstance(variant, CarRentalInsuranceBenefit):
        coverage = "Primary" if variant.coverage_type == CoverageType.PRIMARY else "Secondary"
        text = f"{coverage} car rental insurance"
        return f"{text}, {variant.notes}" if variant.notes else text

    if isinstance(variant, LoungeAccessBenefit):
        return _lounge_details(variant)

    if isinstance(variant, FeeReimbursementBenefit) and variant.details:
        return f"Fee Reimbursement ({variant.details})"

    if isinstance(variant, BaggageBenefit):
        count = variant.free_checked_bags_count
        if count:
            return f"{count} free checked bag{'' if count == 1 else 's'} on airline-operated flights"
        return "Free checked bags on airline-operated flights"

    return _title_case_id(benefit.benefit_id) or "Unnamed Benefit"


def credit_tooltip(credit: Credit, valuation: Optional[UserCardValuation] = None) -> str:
    """
    Explanation behind a credit's value.

    Precedence: user note, custom-valuation marker, catalog explanation,
    empty string.
    """
    override = credit_override(credit, valuation)
    return first_resolved(
        lambda: _user_note(override),
        lambda: _custom_value_marker(override),
        lambda: (credit.default_effective_value_explanation or "").strip() or None,
    ) or ""


def benefit_tooltip(benefit: OtherBenefit, valuation: Optional[UserCardValuation] = None) -> str:
    """
    Explanation behind a benefit's value.

    Precedence: user note, custom-valuation marker, catalog explanation,
    generated variant description.
    """
    override = benefit_override(benefit, valuation)
    return first_resolved(
        lambda: _user_note(override),
        lambda: _custom_value_marker(override),
        lambda: (benefit.default_effective_value_explanation or "").strip() or None,
        lambda: benefit_display_details(benefit),
    )


# =============================================================================
# Visibility
# =============================================================================

def is_benefit_visible(benefit: OtherBenefit) -> bool:
    """
    Whether a benefit appears in the benefit list.

    Fee reimbursements and point perks surface elsewhere and are always
    hidden. Travel status is listed only for hotel elite status. Car rental
    insurance is listed when primary, or when secondary with notes.
    """
    variant = benefit.variant
    if isinstance(variant, (FeeReimbursementBenefit, PointPerkBenefit)):
        return False
    if isinstance(variant, TravelStatusBenefit):
        return variant.status_type == TravelStatusType.HOTEL_ELITE_STATUS
    if isinstance(variant, CarRentalInsuranceBenefit):
        if variant.coverage_type == CoverageType.PRIMARY:
            return True
        return bool(variant.notes)
    return True
