"""
Tests for per-card summaries, card ordering and filtering, and share text.
"""

import pytest

from valuation.models import (
    BaggageBenefit,
    CardType,
    ChipColor,
    Credit,
    CreditCard,
    CreditFrequency,
    CustomAdjustment,
    CustomValue,
    FeeReimbursementBenefit,
    OtherBenefit,
    UserCardValuation,
    ValuationProfile,
)
from valuation.share import share_text
from valuation.summary import FilterMode, SortOrder, filter_cards, sort_cards, summarize_card


@pytest.fixture
def gold_card() -> CreditCard:
    return CreditCard(
        card_id="gold",
        name="Gold Card",
        annual_fee_cents=25000,
        credits=[
            Credit(
                credit_id="dining",
                details="$10 monthly dining credit",
                frequency=CreditFrequency.MONTHLY,
                default_period_value_cents=1000,
                default_effective_value_proportion=0.5,
            ),
            Credit(
                credit_id="hotel",
                details="$100 hotel credit",
                frequency=CreditFrequency.ANNUAL,
                default_period_value_cents=10000,
                default_effective_value_proportion=1.0,
            ),
        ],
        other_benefits=[
            OtherBenefit(
                benefit_id="bags",
                variant=BaggageBenefit(free_checked_bags_count=1),
                default_effective_value_cents=3000,
            ),
            OtherBenefit(benefit_id="tsa", variant=FeeReimbursementBenefit(details="TSA | PreCheck")),
        ],
    )


def _card(card_id: str, fee: int, credit_values: list[int]) -> CreditCard:
    return CreditCard(
        card_id=card_id,
        name=card_id.title(),
        annual_fee_cents=fee,
        credits=[
            Credit(
                credit_id=f"c{i}",
                frequency=CreditFrequency.ANNUAL,
                default_period_value_cents=value,
                default_effective_value_proportion=1.0,
            )
            for i, value in enumerate(credit_values)
        ],
    )


class TestSummarizeCard:
    def test_catalog_only_summary(self, gold_card):
        # Act
        summary = summarize_card(gold_card)

        # Assert
        assert summary.net_worth_cents == 6000 + 10000 - 25000
        assert [line.credit_id for line in summary.credits] == ["hotel", "dining"]
        hotel, dining = summary.credits
        assert (hotel.raw_cents, hotel.effective_cents, hotel.color) == (10000, 10000, ChipColor.SUCCESS)
        assert (dining.raw_cents, dining.effective_cents, dining.color) == (12000, 6000, ChipColor.WARNING)
        assert hotel.rank > dining.rank
        assert [line.benefit_id for line in summary.benefits] == ["bags"]
        assert summary.adjustments == []

    def test_user_overrides_flow_through(self, gold_card):
        valuation = UserCardValuation(
            credit_valuations={"hotel": CustomValue(cents=0, explanation="Never stay there")},
            custom_adjustments=[
                CustomAdjustment(custom_adjustment_id="a1", description="Annoying app", value_cents=-1000),
                CustomAdjustment(custom_adjustment_id="a2", value_cents=100, frequency=CreditFrequency.MONTHLY),
            ],
        )
        profile = ValuationProfile(profile_id="p", card_valuations={"gold": valuation})

        summary = summarize_card(gold_card, profile)

        assert summary.net_worth_cents == 6000 + 0 - 1000 + 1200 - 25000
        assert [line.credit_id for line in summary.credits] == ["dining", "hotel"]
        assert summary.credits[1].tooltip == "Never stay there"
        assert summary.credits[1].color == ChipColor.ERROR
        assert [(a.description, a.annual_cents, a.color) for a in summary.adjustments] == [
            ("Custom item", 1200, ChipColor.SUCCESS),
            ("Annoying app", -1000, ChipColor.ERROR),
        ]


class TestSortCards:
    def test_net_worth_orders(self):
        cards = [_card("low", 10000, []), _card("high", 0, [5000]), _card("mid", 0, [])]

        assert [c.card_id for c in sort_cards(cards)] == ["high", "mid", "low"]
        assert [c.card_id for c in sort_cards(cards, order=SortOrder.NET_LOW_TO_HIGH)] == ["low", "mid", "high"]

    def test_credit_count_orders_are_stable(self):
        cards = [_card("a", 0, [1]), _card("b", 0, [1, 2]), _card("c", 0, [3])]

        assert [c.card_id for c in sort_cards(cards, order="credits_high_to_low")] == ["b", "a", "c"]
        assert [c.card_id for c in sort_cards(cards, order="credits_low_to_high")] == ["a", "c", "b"]

    def test_profile_changes_net_order(self):
        cards = [_card("a", 0, [1000]), _card("b", 0, [500])]
        profile = ValuationProfile(
            profile_id="p",
            card_valuations={"a": UserCardValuation(credit_valuations={"c0": CustomValue(cents=0)})},
        )
        assert [c.card_id for c in sort_cards(cards, profile)] == ["b", "a"]

    def test_invalid_order(self):
        with pytest.raises(ValueError):
            sort_cards([], order="alphabetical")


class TestFilterCards:
    """Tests for narrowing the card list by type, issuer and name."""

    @pytest.fixture
    def cards(self) -> list[CreditCard]:
        return [
            CreditCard(card_id="plat", name="The Platinum Card", issuer="American Express", card_type=CardType.PERSONAL),
            CreditCard(card_id="biz-plat", name="Business Platinum", issuer="American Express", card_type=CardType.BUSINESS),
            CreditCard(card_id="ink", name="Ink Business Preferred", issuer="Chase", card_type=CardType.BUSINESS),
            CreditCard(card_id="untyped", issuer="Example Bank"),
        ]

    def _ids(self, cards):
        return [card.card_id for card in cards]

    def test_all_keeps_catalog_order(self, cards):
        assert self._ids(filter_cards(cards)) == ["plat", "biz-plat", "ink", "untyped"]

    def test_personal_only_includes_untyped_cards(self, cards):
        assert self._ids(filter_cards(cards, FilterMode.PERSONAL_ONLY)) == ["plat", "untyped"]

    def test_business_only(self, cards):
        assert self._ids(filter_cards(cards, "business_only")) == ["biz-plat", "ink"]

    def test_issuers_are_case_insensitive(self, cards):
        assert self._ids(filter_cards(cards, issuers=["chase", " example bank "])) == ["ink", "untyped"]

    def test_empty_issuer_list_keeps_nothing(self, cards):
        assert filter_cards(cards, issuers=[]) == []

    def test_search_matches_name_substring(self, cards):
        # Arrange / Act: "platinum" in two names, and a card without a name matches on its id
        by_name = filter_cards(cards, search="PLATINUM")
        by_id = filter_cards(cards, search="untyp")

        # Assert
        assert self._ids(by_name) == ["plat", "biz-plat"]
        assert self._ids(by_id) == ["untyped"]

    def test_criteria_combine(self, cards):
        selected = filter_cards(cards, FilterMode.BUSINESS_ONLY, issuers=["American Express"], search="plat")
        assert self._ids(selected) == ["biz-plat"]

    def test_invalid_mode(self, cards):
        with pytest.raises(ValueError):
            filter_cards(cards, "custom")


class TestShareText:
    def test_plain(self, gold_card):
        valuation = UserCardValuation(
            custom_adjustments=[
                CustomAdjustment(description="Lounge snacks", value_cents=500),
                CustomAdjustment(description="Nothing", value_cents=0),
            ]
        )

        text = share_text(gold_card, valuation, "plain")

        lines = text.splitlines()
        assert lines[0] == "My valuation of Gold Card:"
        assert lines[1] == "Annual fee $250, net worth $-85"
        assert "Credits:" in lines
        assert "  • $10 monthly dining credit, face value $120, my value $60" in lines
        assert "  • 1 free checked bag on airline-operated flights, my value $30" in lines
        assert "  • Fee Reimbursement (TSA | PreCheck), my value $0" in lines
        assert "  • Lounge snacks, my value $5" in lines
        assert "Nothing" not in text

    def test_plain_omits_empty_sections(self):
        text = share_text(CreditCard(card_id="bare", name="Bare"), None, "plain")
        assert text == "My valuation of Bare:\nAnnual fee $0, net worth $0"

    def test_markdown_table(self, gold_card):
        valuation = UserCardValuation(
            custom_adjustments=[CustomAdjustment(description="Lounge | snacks", value_cents=500)]
        )

        text = share_text(gold_card, valuation, "markdown")

        assert text.startswith("My valuation of Gold Card:\nAnnual fee **$250**, net worth **$-85**\n")
        assert "| Type | Description | Face value | My value |" in text
        assert "| Credit | $10 monthly dining credit | $120 | $60 |" in text
        assert "| Benefit | 1 free checked bag on airline-operated flights | N/A | $30 |" in text
        assert "| Custom | Lounge   snacks | N/A | $5 |" in text
        assert "TSA" not in text

    def test_invalid_format(self, gold_card):
        with pytest.raises(ValueError):
            share_text(gold_card, None, "html")
