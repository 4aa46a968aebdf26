"""
Per-card valuation summaries and card ordering.
Orchestrates the calculation and display rules into one result per card.
"""

from enum import Enum
from typing import Iterable, Optional

from valuation.calculations import (
    adjustment_annual_cents,
    card_valuation_for,
    effective_benefit_cents,
    effective_credit_cents,
    net_worth_cents,
    raw_annual_cents,
)
from valuation.display import (
    benefit_display_details,
    benefit_tooltip,
    classify_adjustment,
    classify_benefit,
    classify_credit,
    color_rank,
    credit_tooltip,
    is_benefit_visible,
    sort_adjustments,
    sort_credits,
)
from valuation.models import (
    AdjustmentLine,
    BenefitLine,
    CardType,
    CardValuationSummary,
    CreditCard,
    CreditLine,
    ValuationProfile,
)


class SortOrder(str, Enum):
    NET_HIGH_TO_LOW = "net_high_to_low"
    NET_LOW_TO_HIGH = "net_low_to_high"
    CREDITS_HIGH_TO_LOW = "credits_high_to_low"
    CREDITS_LOW_TO_HIGH = "credits_low_to_high"


class FilterMode(str, Enum):
    ALL = "all"
    PERSONAL_ONLY = "personal_only"
    BUSINESS_ONLY = "business_only"


def summarize_card(card: CreditCard, profile: Optional[ValuationProfile] = None) -> CardValuationSummary:
    """
    Build the full valuation breakdown of a card for a user.

    Args:
        card: Catalog card
        profile: The user's active profile, if any

    Returns:
        CardValuationSummary with sorted credit and adjustment lines and the
        visible benefits
    """
    valuation = card_valuation_for(card, profile)

    credit_lines = []
    for credit in sort_credits(list(card.credits), valuation):
        color = classify_credit(credit, valuation)
        credit_lines.append(
            CreditLine(
                credit_id=credit.credit_id,
                details=credit.details or credit.credit_id,
                raw_cents=raw_annual_cents(credit),
                effective_cents=effective_credit_cents(credit, valuation),
                color=color,
                rank=color_rank(color),
                tooltip=credit_tooltip(credit, valuation),
            )
        )

    benefit_lines = [
        BenefitLine(
            benefit_id=benefit.benefit_id,
            details=benefit_display_details(benefit),
            effective_cents=effective_benefit_cents(benefit, valuation),
            color=classify_benefit(benefit, valuation),
            tooltip=benefit_tooltip(benefit, valuation),
        )
        for benefit in card.other_benefits
        if is_benefit_visible(benefit)
    ]

    adjustments = list(valuation.custom_adjustments) if valuation else []
    adjustment_lines = []
    for adjustment in sort_adjustments(adjustments):
        annual = adjustment_annual_cents(adjustment)
        adjustment_lines.append(
            AdjustmentLine(
                custom_adjustment_id=adjustment.custom_adjustment_id,
                description=adjustment.description or "Custom item",
                annual_cents=annual,
                color=classify_adjustment(annual),
            )
        )

    return CardValuationSummary(
        card_id=card.card_id,
        name=card.name or card.card_id,
        annual_fee_cents=card.annual_fee_cents,
        net_worth_cents=net_worth_cents(card, profile),
        credits=credit_lines,
        benefits=benefit_lines,
        adjustments=adjustment_lines,
    )


def sort_cards(
    cards: Iterable[CreditCard],
    profile: Optional[ValuationProfile] = None,
    order: SortOrder = SortOrder.NET_HIGH_TO_LOW,
) -> list[CreditCard]:
    """
    Order cards for display. Ties keep catalog order.

    Raises:
        ValueError: If order is not a SortOrder value
    """
    order = SortOrder(order)
    cards = list(cards)

    if order in (SortOrder.NET_HIGH_TO_LOW, SortOrder.NET_LOW_TO_HIGH):
        return sorted(
            cards,
            key=lambda c: net_worth_cents(c, profile),
            reverse=order == SortOrder.NET_HIGH_TO_LOW,
        )
    return sorted(
        cards,
        key=lambda c: len(c.credits),
        reverse=order == SortOrder.CREDITS_HIGH_TO_LOW,
    )


def is_business_card(card: CreditCard) -> bool:
    return card.card_type == CardType.BUSINESS


def filter_cards(
    cards: Iterable[CreditCard],
    mode: FilterMode = FilterMode.ALL,
    issuers: Optional[Iterable[str]] = None,
    search: Optional[str] = None,
) -> list[CreditCard]:
    """
    Narrow the card list the way the card picker does. Catalog order is kept.

    Args:
        cards: Catalog cards
        mode: all, personal_only or business_only; cards that are not
            business cards count as personal
        issuers: Keep only these issuers (case-insensitive); None keeps all
        search: Case-insensitive substring of the card name (card_id when
            the card has no name); blank keeps all

    Raises:
        ValueError: If mode is not a FilterMode value

    Example:
        >>> filter_cards(cards, FilterMode.BUSINESS_ONLY, issuers=["chase"])
    """
    mode = FilterMode(mode)
    wanted_issuers = {issuer.strip().lower() for issuer in issuers} if issuers is not None else None
    needle = (search or "").strip().lower()

    selected = []
    for card in cards:
        if mode == FilterMode.PERSONAL_ONLY and is_business_card(card):
            continue
        if mode == FilterMode.BUSINESS_ONLY and not is_business_card(card):
            continue
        if wanted_issuers is not None and (card.issuer or "").strip().lower() not in wanted_issuers:
            continue
        if needle and needle not in (card.name or card.card_id).lower():
            continue
        selected.append(card)
    return selected
