"""
Card catalog loading and data checks.

The catalog is decoded once and treated as immutable afterwards.
"""

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from valuation.errors import CatalogLoadError
from valuation.models import CreditCardDatabase

logger = logging.getLogger(__name__)


def load_catalog(path: str | os.PathLike) -> CreditCardDatabase:
    """
    Read and decode the card catalog file.

    Args:
        path: Path to the catalog JSON file

    Returns:
        CreditCardDatabase

    Raises:
        CatalogLoadError: If the file is missing or does not match the schema
    """
    catalog_path = Path(path)
    try:
        raw = catalog_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogLoadError(f"Cannot read card catalog at {catalog_path}: {exc}") from exc

    try:
        database = CreditCardDatabase.model_validate_json(raw)
    except ValidationError as exc:
        raise CatalogLoadError(f"Card catalog at {catalog_path} is invalid: {exc}") from exc

    logger.info("Loaded %d cards from %s", len(database.cards), catalog_path)
    return database


def find_catalog_problems(database: CreditCardDatabase) -> list[str]:
    """
    Check catalog data for problems the schema alone cannot catch.

    Checks:
    - card ids are non-empty and unique; every card has a name
    - credit ids and benefit ids are non-empty and unique within their card
    - default effective proportions are within 0..1

    Returns:
        List of problem descriptions (empty when the catalog is clean)
    """
    problems: list[str] = []
    card_ids: set[str] = set()

    for card in database.cards:
        label = card.name or card.card_id or "<unnamed card>"
        if not card.card_id:
            problems.append(f'Card "{label}" is missing its card_id.')
        elif card.card_id in card_ids:
            problems.append(f'Duplicate card_id "{card.card_id}".')
        card_ids.add(card.card_id)

        if not card.name:
            problems.append(f'Card "{card.card_id}" is missing its name.')

        credit_ids: set[str] = set()
        for credit in card.credits:
            if not credit.credit_id:
                problems.append(f'A credit in card "{label}" is missing its credit_id.')
            elif credit.credit_id in credit_ids:
                problems.append(f'Duplicate credit_id "{credit.credit_id}" found in card "{label}".')
            credit_ids.add(credit.credit_id)
            if not 0 <= (credit.default_effective_value_proportion or 0) <= 1:
                problems.append(f'Credit "{credit.credit_id}" in card "{label}" has a proportion outside 0..1.')

        benefit_ids: set[str] = set()
        for benefit in card.other_benefits:
            if not benefit.benefit_id:
                problems.append(f'A benefit in card "{label}" is missing its benefit_id.')
            elif benefit.benefit_id in benefit_ids:
                problems.append(f'Duplicate benefit_id "{benefit.benefit_id}" found in card "{label}".')
            benefit_ids.add(benefit.benefit_id)
            if not 0 <= (benefit.default_effective_value_proportion or 0) <= 1:
                problems.append(f'Benefit "{benefit.benefit_id}" in card "{label}" has a proportion outside 0..1.')

    return problems
