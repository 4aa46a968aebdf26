import logging
from typing import Optional

from valuation.errors import ValuationError
from valuation.models import CardValuationSummary, CreditCard, UserAccountData, UserCardValuation, ValuationProfile
from valuation.profile_store import BackupFile, ProfileStore
from valuation.share import SHARE_FORMATS, share_text
from valuation.breakeven import BreakevenAnalysis, SpendCategory, breakeven_analysis
from valuation.summary import FilterMode, SortOrder, filter_cards, sort_cards, summarize_card

from app.services.catalog_service import CatalogService
from app.services.errors import ServiceError, service_error_from

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "default"


class ValuationService:
    """Card valuations for the stored profile, over the shared catalog."""

    def __init__(self, catalog: CatalogService, store: ProfileStore):
        self.catalog = catalog
        self.store = store

    def _active_profile(self) -> Optional[ValuationProfile]:
        return self.store.load_active()

    def _profile_id(self) -> str:
        active = self._active_profile()
        return active.profile_id if active else DEFAULT_PROFILE_ID

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    def list_summaries(
        self,
        sort: str = SortOrder.NET_HIGH_TO_LOW.value,
        mode: str = FilterMode.ALL.value,
        issuers: Optional[list[str]] = None,
        search: Optional[str] = None,
    ) -> list[CardValuationSummary]:
        """
        Summaries of the catalog cards that pass the filters, ordered for display.

        Raises:
            ServiceError: 400 if sort or mode is not a known value
        """
        try:
            order = SortOrder(sort)
        except ValueError:
            raise ServiceError(
                400,
                "VALIDATION_ERROR",
                "Invalid sort order.",
                {"field": "sort", "allowed": [o.value for o in SortOrder]},
            )
        try:
            filter_mode = FilterMode(mode)
        except ValueError:
            raise ServiceError(
                400,
                "VALIDATION_ERROR",
                "Invalid filter mode.",
                {"field": "mode", "allowed": [m.value for m in FilterMode]},
            )
        profile = self._active_profile()
        selected = filter_cards(self.catalog.get_catalog(), filter_mode, issuers=issuers, search=search)
        cards = sort_cards(selected, profile, order)
        return [summarize_card(card, profile) for card in cards]

    def get_summary(self, card_id: str) -> CardValuationSummary:
        card = self.catalog.get_card(card_id)
        return summarize_card(card, self._active_profile())

    def get_card_valuation(self, card_id: str) -> UserCardValuation:
        self.catalog.get_card(card_id)
        profile = self._active_profile()
        if profile and card_id in profile.card_valuations:
            return profile.card_valuations[card_id]
        return UserCardValuation()

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def save_card_valuation(self, card_id: str, valuation: UserCardValuation) -> CardValuationSummary:
        card = self.catalog.get_card(card_id)
        try:
            profile = self.store.save_card_valuation(self._profile_id(), card_id, valuation)
        except ValuationError as exc:
            raise service_error_from(exc, {"card_id": card_id})
        return summarize_card(card, profile)

    def clear_card_valuation(self, card_id: str) -> CardValuationSummary:
        card = self.catalog.get_card(card_id)
        try:
            profile = self.store.clear_card_valuation(card_id)
        except ValuationError as exc:
            raise service_error_from(exc, {"card_id": card_id})
        return summarize_card(card, profile)

    def share(self, card_id: str, fmt: str = "plain") -> str:
        card: CreditCard = self.catalog.get_card(card_id)
        if fmt not in SHARE_FORMATS:
            raise ServiceError(
                400, "VALIDATION_ERROR", "Invalid share format.", {"field": "format", "allowed": list(SHARE_FORMATS)}
            )
        profile = self._active_profile()
        valuation = profile.card_valuations.get(card_id) if profile else None
        return share_text(card, valuation, fmt)

    def breakeven(
        self,
        card_id: str,
        spendings: list[SpendCategory],
        cents_per_point: float,
        include_net_worth: bool = True,
    ) -> tuple[CardValuationSummary, BreakevenAnalysis]:
        """
        Breakeven table for planned spending on one card, using the card's
        net worth for the stored profile.

        Raises:
            ServiceError: 404 for an unknown card, 400 when no spend is positive
        """
        summary = self.get_summary(card_id)
        analysis = breakeven_analysis(spendings, cents_per_point, summary.net_worth_cents, include_net_worth)
        if analysis is None:
            raise ServiceError(
                400, "VALIDATION_ERROR", "At least one spending needs a positive amount.", {"field": "spendings"}
            )
        return summary, analysis

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------
    def get_profile(self) -> ValuationProfile:
        profile = self._active_profile()
        if profile is None:
            raise ServiceError(404, "NOT_FOUND", "Profile not found.", {})
        return profile

    def upsert_profile(self, profile: ValuationProfile) -> ValuationProfile:
        try:
            return self.store.upsert(profile)
        except ValuationError as exc:
            raise service_error_from(exc, {"profile_id": profile.profile_id})

    def clear_profile(self) -> None:
        self.store.clear_all()

    def export_backup(self) -> BackupFile:
        """
        Backup document for download. Corrupt data is exported as an
        emergency backup rather than refused.
        """
        backup = self.store.export_backup()
        if backup is None:
            backup = self.store.emergency_backup()
        if backup is None:
            raise ServiceError(404, "NOT_FOUND", "No valuation data to back up.", {})
        return backup

    def restore_backup(self, content: str) -> UserAccountData:
        try:
            return self.store.restore_backup(content)
        except ValuationError as exc:
            logger.warning("Backup restore rejected: %s", exc)
            raise service_error_from(exc)
