from typing import Optional

from valuation.catalog import find_catalog_problems, load_catalog
from valuation.models import CreditCard, CreditCardDatabase

from app.services.errors import ServiceError


class CatalogService:
    """Read-only access to the card catalog, loaded once and shared."""

    def __init__(self, database: CreditCardDatabase):
        self.database = database
        self._cards_by_id = {card.card_id: card for card in database.cards}

    @classmethod
    def from_file(cls, path: str) -> "CatalogService":
        return cls(load_catalog(path))

    def get_catalog(self) -> list[CreditCard]:
        """Retrieve all cards in catalog order."""
        return list(self.database.cards)

    def find_card(self, card_id: str) -> Optional[CreditCard]:
        return self._cards_by_id.get(card_id)

    def get_card(self, card_id: str) -> CreditCard:
        card = self.find_card(card_id)
        if card is None:
            raise ServiceError(404, "NOT_FOUND", "Card not found.", {"card_id": card_id})
        return card

    def get_problems(self) -> list[str]:
        return find_catalog_problems(self.database)
