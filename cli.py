"""
Command-line interface for the card benefit valuation engine.
Overrides are kept in a local JSON storage file; the catalog is read-only.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from valuation.breakeven import SpendCategory, SpendMode, breakeven_analysis
from valuation.catalog import load_catalog
from valuation.errors import ValuationError
from valuation.models import (
    CreditCard,
    CreditCardDatabase,
    CreditFrequency,
    CustomAdjustment,
    CustomValue,
    UserCardValuation,
)
from valuation.profile_store import ProfileStore
from valuation.share import SHARE_FORMATS, share_text
from valuation.storage import JsonFileStorage
from valuation.summary import FilterMode, SortOrder, filter_cards, sort_cards, summarize_card

logger = logging.getLogger(__name__)

# Default file paths
CATALOG_PATH = Path("backend/data/card_database.json")
DATA_PATH = Path("data/user_account.json")
DEFAULT_PROFILE_ID = "default"


def _dollars(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}${abs(cents) / 100:.2f}"


def _fail(message: str):
    print(f"Error: {message}")
    sys.exit(1)


def _store(args) -> ProfileStore:
    return ProfileStore(JsonFileStorage(args.data))


def _catalog(args) -> CreditCardDatabase:
    try:
        return load_catalog(args.catalog)
    except ValuationError as exc:
        _fail(str(exc))


def _find_card(args) -> CreditCard:
    for card in _catalog(args).cards:
        if card.card_id == args.card:
            return card
    _fail(f"Unknown card '{args.card}'.")


def _current_valuation(store: ProfileStore, card_id: str) -> UserCardValuation:
    profile = store.load_active()
    if profile and card_id in profile.card_valuations:
        return profile.card_valuations[card_id].model_copy(deep=True)
    return UserCardValuation()


def _save(args, store: ProfileStore, card: CreditCard, valuation: UserCardValuation) -> None:
    active = store.load_active()
    profile_id = active.profile_id if active else args.profile
    try:
        profile = store.save_card_valuation(profile_id, card.card_id, valuation)
    except ValuationError as exc:
        _fail(str(exc))
    summary = summarize_card(card, profile)
    print(f"Saved. {summary.name} is now worth {_dollars(summary.net_worth_cents)} a year.")


def _custom_value(args) -> CustomValue:
    if args.cents is None and args.proportion is None:
        _fail("Provide --cents or --proportion.")
    if args.proportion is not None and not 0 <= args.proportion <= 1:
        _fail(f"Proportion must be between 0 and 1. Got: {args.proportion}")
    return CustomValue(cents=args.cents, proportion=args.proportion, explanation=args.note)


def generate_adjustment_id(valuation: UserCardValuation) -> str:
    """
    Generate a unique custom adjustment ID based on timestamp.

    Returns:
        Adjustment ID string (e.g., "adj_20250115_123045_001")
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    existing_ids = {adj.custom_adjustment_id for adj in valuation.custom_adjustments}

    counter = 1
    while True:
        adj_id = f"adj_{timestamp}_{counter:03d}"
        if adj_id not in existing_ids:
            return adj_id
        counter += 1


def cmd_cards(args):
    """List catalog cards with their net worth for the stored profile."""
    try:
        order = SortOrder(args.sort)
    except ValueError:
        _fail(f"Invalid sort '{args.sort}'. Must be one of: {', '.join(o.value for o in SortOrder)}")
    try:
        mode = FilterMode(args.mode)
    except ValueError:
        _fail(f"Invalid mode '{args.mode}'. Must be one of: {', '.join(m.value for m in FilterMode)}")

    profile = _store(args).load_active()
    selected = filter_cards(_catalog(args).cards, mode, issuers=args.issuer, search=args.search)
    cards = sort_cards(selected, profile, order)

    if not cards:
        print("No cards match.")
        return

    print(f"\n=== Cards ({order.value}) ===\n")
    for card in cards:
        summary = summarize_card(card, profile)
        print(f"{card.card_id}: {summary.name}")
        print(f"  Annual fee: {_dollars(summary.annual_fee_cents)}  Net worth: {_dollars(summary.net_worth_cents)}")
    print()


def cmd_show(args):
    """
    Show the full valuation breakdown of one card.

    Args:
        args: Parsed command-line arguments with fields:
            - card: card_id from the catalog
    """
    card = _find_card(args)
    summary = summarize_card(card, _store(args).load_active())

    print(f"\n=== {summary.name} ===\n")
    print(f"Annual fee: {_dollars(summary.annual_fee_cents)}")
    print(f"Net worth:  {_dollars(summary.net_worth_cents)}")

    print("\nCredits:")
    if summary.credits:
        for line in summary.credits:
            print(f"  [{line.color.value}] {line.details}: {_dollars(line.effective_cents)} of {_dollars(line.raw_cents)}")
            if line.tooltip:
                print(f"      {line.tooltip}")
    else:
        print("  (No credits)")

    print("\nBenefits:")
    if summary.benefits:
        for line in summary.benefits:
            print(f"  [{line.color.value}] {line.details}: {_dollars(line.effective_cents)}")
    else:
        print("  (No benefits)")

    if summary.adjustments:
        print("\nCustom:")
        for line in summary.adjustments:
            print(f"  [{line.color.value}] {line.description}: {_dollars(line.annual_cents)} a year")
    print()


def cmd_set_credit(args):
    card = _find_card(args)
    if args.credit not in {credit.credit_id for credit in card.credits}:
        _fail(f"Card '{card.card_id}' has no credit '{args.credit}'.")

    store = _store(args)
    valuation = _current_valuation(store, card.card_id)
    valuation.credit_valuations[args.credit] = _custom_value(args)
    _save(args, store, card, valuation)


def cmd_set_benefit(args):
    card = _find_card(args)
    if args.benefit not in {benefit.benefit_id for benefit in card.other_benefits}:
        _fail(f"Card '{card.card_id}' has no benefit '{args.benefit}'.")

    store = _store(args)
    valuation = _current_valuation(store, card.card_id)
    valuation.other_benefit_valuations[args.benefit] = _custom_value(args)
    _save(args, store, card, valuation)


def cmd_add_adjustment(args):
    """
    Add a custom line item to a card.

    Args:
        args: Parsed command-line arguments with fields:
            - card: card_id from the catalog
            - description: free text
            - cents: signed value per billing period
            - frequency: annual | semi_annual | quarterly | monthly
    """
    try:
        frequency = CreditFrequency(args.frequency)
    except ValueError:
        _fail(f"Invalid frequency '{args.frequency}'.")

    card = _find_card(args)
    store = _store(args)
    valuation = _current_valuation(store, card.card_id)
    valuation.custom_adjustments.append(
        CustomAdjustment(
            custom_adjustment_id=generate_adjustment_id(valuation),
            description=args.description,
            value_cents=args.cents,
            frequency=frequency,
        )
    )
    _save(args, store, card, valuation)


def cmd_clear_card(args):
    card = _find_card(args)
    try:
        profile = _store(args).clear_card_valuation(card.card_id)
    except ValuationError as exc:
        _fail(str(exc))
    if profile is None:
        print("Nothing to clear.")
        return
    print(f"Cleared all overrides for {card.name or card.card_id}.")


def cmd_share(args):
    card = _find_card(args)
    profile = _store(args).load_active()
    valuation = profile.card_valuations.get(card.card_id) if profile else None
    print(share_text(card, valuation, args.format))


def _spend_categories(args) -> list[SpendCategory]:
    categories = []
    for mode, entries in ((SpendMode.LINEAR, args.spend or []), (SpendMode.FIXED, args.fixed_spend or [])):
        for entry in entries:
            if len(entry) not in (3, 4):
                _fail("Spend lines take DESCRIPTION MULTIPLIER AMOUNT [FREQUENCY].")
            description, multiplier, amount, *rest = entry
            try:
                categories.append(
                    SpendCategory(
                        description=description,
                        multiplier=float(multiplier),
                        amount=float(amount),
                        frequency=CreditFrequency(rest[0] if rest else CreditFrequency.ANNUAL.value),
                        mode=mode,
                    )
                )
            except ValueError:
                _fail(f"Invalid spend line: {' '.join(entry)}")
    return categories


def cmd_breakeven(args):
    """
    Show how much yearly spend on a card reaches each target return rate.

    Args:
        args: Parsed command-line arguments with fields:
            - card: card_id from the catalog
            - cpp: value of one point in cents
            - spend / fixed_spend: DESCRIPTION MULTIPLIER AMOUNT [FREQUENCY]
            - exclude_net_worth: ignore the card's net worth
    """
    card = _find_card(args)
    summary = summarize_card(card, _store(args).load_active())
    analysis = breakeven_analysis(
        _spend_categories(args),
        args.cpp,
        summary.net_worth_cents,
        include_net_worth=not args.exclude_net_worth,
    )
    if analysis is None:
        print("Add at least one --spend or --fixed-spend line with a positive amount.")
        return

    print(f"\n=== Breakeven: {summary.name} ===\n")
    print(f"Planned spend: ${analysis.total_annual_spend:.2f} a year, {analysis.spend_return_rate:.2f}% back in points")
    print(f"Overall return: {analysis.current_rate:.2f}%")

    if analysis.constant_rate is not None:
        print(f"\nEvery dollar returns {analysis.constant_rate:.2f}%; spend volume does not change the rate.\n")
        return

    print()
    for row in analysis.rows:
        if row.total is None:
            print(f"  {row.target_percent}%: not reachable")
            continue
        parts = ", ".join(f"{name} ${amount:.2f}" for name, amount in zip(analysis.headers, row.breakdown))
        print(f"  {row.target_percent}%: spend ${row.total:.2f} ({parts})")
    print()


def cmd_backup(args):
    store = _store(args)
    backup = store.export_backup()
    if backup is None and store.raw_blob() is not None:
        logger.warning("Stored data is corrupt; writing an emergency backup instead.")
        backup = store.emergency_backup()
    if backup is None:
        print("No valuation data to back up.")
        return

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / backup.filename
    with open(path, "w", encoding="utf-8") as f:
        f.write(backup.content)
    print(f"Backup written: {path}")


def cmd_restore(args):
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as exc:
        _fail(f"Cannot read backup file: {exc}")

    try:
        account = _store(args).restore_backup(content)
    except ValuationError as exc:
        _fail(str(exc))
    print(f"Restored {len(account.profiles)} profile(s).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Credit Card Benefit Valuation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--catalog", default=str(CATALOG_PATH), help="Card catalog JSON file")
    parser.add_argument("--data", default=str(DATA_PATH), help="Local storage file for your overrides")
    parser.add_argument("--profile", default=DEFAULT_PROFILE_ID, help="Profile id used for the first save")
    parser.add_argument("--verbose", action="store_true", help="Log at INFO level")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Cards command
    parser_cards = subparsers.add_parser("cards", help="List cards with their net worth")
    parser_cards.add_argument("--sort", default=SortOrder.NET_HIGH_TO_LOW.value, help="Sort order")
    parser_cards.add_argument("--mode", default=FilterMode.ALL.value, help="all | personal_only | business_only")
    parser_cards.add_argument("--issuer", action="append", default=None, help="Only this issuer (repeatable)")
    parser_cards.add_argument("--search", default=None, help="Part of the card name")

    # Show command
    parser_show = subparsers.add_parser("show", help="Show one card's valuation")
    parser_show.add_argument("--card", required=True, help="Card ID")

    # Set-credit / set-benefit commands
    for name, target, help_text in (
        ("set-credit", "--credit", "Override what a credit is worth to you"),
        ("set-benefit", "--benefit", "Override what a benefit is worth to you"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--card", required=True, help="Card ID")
        sub.add_argument(target, required=True, help="Credit or benefit ID")
        sub.add_argument("--cents", type=int, default=None, help="Annual value in cents")
        sub.add_argument("--proportion", type=float, default=None, help="Fraction (0-1) of the face value")
        sub.add_argument("--note", default=None, help="Why you value it this way (optional)")

    # Add-adjustment command
    parser_adj = subparsers.add_parser("add-adjustment", help="Add a custom line item to a card")
    parser_adj.add_argument("--card", required=True, help="Card ID")
    parser_adj.add_argument("--description", required=True, help="What the item is")
    parser_adj.add_argument("--cents", type=int, required=True, help="Signed value per period in cents")
    parser_adj.add_argument("--frequency", default=CreditFrequency.ANNUAL.value,
                            help="annual | semi_annual | quarterly | monthly")

    # Clear-card command
    parser_clear = subparsers.add_parser("clear-card", help="Remove all overrides for a card")
    parser_clear.add_argument("--card", required=True, help="Card ID")

    # Share command
    parser_share = subparsers.add_parser("share", help="Print a shareable summary")
    parser_share.add_argument("--card", required=True, help="Card ID")
    parser_share.add_argument("--format", default="plain", choices=SHARE_FORMATS, help="plain | markdown")

    # Breakeven command
    parser_breakeven = subparsers.add_parser("breakeven", help="Spend needed to reach target return rates")
    parser_breakeven.add_argument("--card", required=True, help="Card ID")
    parser_breakeven.add_argument("--cpp", type=float, default=1.0, help="Value of one point in cents")
    parser_breakeven.add_argument("--spend", nargs="+", action="append", metavar="VALUE",
                                  help="Spend that scales: DESCRIPTION MULTIPLIER AMOUNT [FREQUENCY] (repeatable)")
    parser_breakeven.add_argument("--fixed-spend", nargs="+", action="append", metavar="VALUE",
                                  help="Spend that stays put: DESCRIPTION MULTIPLIER AMOUNT [FREQUENCY] (repeatable)")
    parser_breakeven.add_argument("--exclude-net-worth", action="store_true", help="Ignore the card's net worth")

    # Backup / restore commands
    parser_backup = subparsers.add_parser("backup", help="Write a backup file")
    parser_backup.add_argument("--out", default=".", help="Output directory")
    parser_restore = subparsers.add_parser("restore", help="Replace all data from a backup file")
    parser_restore.add_argument("--file", required=True, help="Backup JSON file")

    return parser


COMMANDS = {
    "cards": cmd_cards,
    "show": cmd_show,
    "set-credit": cmd_set_credit,
    "set-benefit": cmd_set_benefit,
    "add-adjustment": cmd_add_adjustment,
    "clear-card": cmd_clear_card,
    "share": cmd_share,
    "breakeven": cmd_breakeven,
    "backup": cmd_backup,
    "restore": cmd_restore,
}


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
