"""Shareable plain-text and markdown summaries of a card valuation."""

from typing import Optional

from valuation.calculations import (
    adjustment_annual_cents,
    effective_benefit_cents,
    effective_credit_cents,
    net_worth_cents,
    raw_annual_cents,
    round_half_up,
)
from valuation.display import benefit_display_details, is_benefit_visible
from valuation.models import CreditCard, UserCardValuation, ValuationProfile

SHARE_FORMATS = ("plain", "markdown")


def _dollars(cents: int) -> str:
    return f"${round_half_up(cents / 100)}"


def _sanitize(text: Optional[str]) -> str:
    return (text or "N/A").replace("|", " ")


def _headline(card: CreditCard, valuation: Optional[UserCardValuation], bold: bool = False) -> list[str]:
    profile = ValuationProfile(card_valuations={card.card_id: valuation}) if valuation else None
    fee = _dollars(card.annual_fee_cents)
    net = _dollars(net_worth_cents(card, profile))
    if bold:
        fee, net = f"**{fee}**", f"**{net}**"
    return [
        f"My valuation of {card.name or 'this card'}:",
        f"Annual fee {fee}, net worth {net}",
    ]


def _plain(card: CreditCard, valuation: Optional[UserCardValuation]) -> str:
    lines = _headline(card, valuation)
    lines.append("")

    if card.credits:
        lines.append("Credits:")
        for credit in card.credits:
            lines.append(
                f"  • {credit.details or 'N/A'}, face value {_dollars(raw_annual_cents(credit))}, "
                f"my value {_dollars(effective_credit_cents(credit, valuation))}"
            )
        lines.append("")

    benefits = [b for b in card.other_benefits if effective_benefit_cents(b, valuation) >= 0]
    if benefits:
        lines.append("Benefits:")
        for benefit in benefits:
            lines.append(
                f"  • {benefit_display_details(benefit)}, "
                f"my value {_dollars(effective_benefit_cents(benefit, valuation))}"
            )
        lines.append("")

    adjustments = [adj for adj in (valuation.custom_adjustments if valuation else []) if adj.value_cents]
    if adjustments:
        lines.append("Custom:")
        for adjustment in adjustments:
            lines.append(
                f"  • {adjustment.description or 'Custom item'}, "
                f"my value {_dollars(adjustment_annual_cents(adjustment))}"
            )
        lines.append("")

    return "\n".join(lines).strip()


def _markdown(card: CreditCard, valuation: Optional[UserCardValuation]) -> str:
    summary = "\n".join(_headline(card, valuation, bold=True)) + "\n"
    table = [
        "| Type | Description | Face value | My value |",
        "|:---|:---|:---|:---|",
    ]
    for credit in card.credits:
        table.append(
            f"| Credit | {_sanitize(credit.details)} | {_dollars(raw_annual_cents(credit))} "
            f"| {_dollars(effective_credit_cents(credit, valuation))} |"
        )
    for benefit in card.other_benefits:
        if not is_benefit_visible(benefit):
            continue
        table.append(
            f"| Benefit | {_sanitize(benefit_display_details(benefit))} | N/A "
            f"| {_dollars(effective_benefit_cents(benefit, valuation))} |"
        )
    for adjustment in valuation.custom_adjustments if valuation else []:
        table.append(
            f"| Custom | {_sanitize(adjustment.description)} | N/A "
            f"| {_dollars(adjustment_annual_cents(adjustment))} |"
        )
    return summary + "\n" + "\n".join(table)


def share_text(card: CreditCard, valuation: Optional[UserCardValuation] = None, fmt: str = "plain") -> str:
    """
    Render a card valuation for sharing.

    Args:
        card: Catalog card
        valuation: The user's valuation of this card, if any
        fmt: "plain" or "markdown"

    Raises:
        ValueError: If fmt is not a supported format
    """
    if fmt == "plain":
        return _plain(card, valuation)
    if fmt == "markdown":
        return _markdown(card, valuation)
    raise ValueError(f"Invalid share format: {fmt}. Must be one of {', '.join(SHARE_FORMATS)}.")
