"""
Data models for the Card Verdict valuation engine.

Catalog and user-valuation records are pydantic models so they can be decoded
from the catalog file and round-tripped through the persisted storage blob.
Computed results are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreditFrequency(str, Enum):
    UNSPECIFIED = "unspecified"
    ANNUAL = "annual"
    SEMI_ANNUAL = "semi_annual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"


class CardType(str, Enum):
    UNSPECIFIED = "unspecified"
    PERSONAL = "personal"
    BUSINESS = "business"


class ChipColor(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    PRIMARY = "primary"


# Catalog data is loaded once per session and never mutated.
_CATALOG_CONFIG = ConfigDict(frozen=True)


# =============================================================================
# Catalog: credits
# =============================================================================

class PeriodOverride(BaseModel):
    """
    Face value for one specific billing period of a credit.

    Fields:
    - period: 1-based period index within the year
    - value_cents: face value for that period
    """
    model_config = _CATALOG_CONFIG

    period: Optional[int] = None
    value_cents: Optional[int] = None


class Credit(BaseModel):
    """
    A recurring reimbursement attached to a card.

    Fields:
    - credit_id: unique within a card
    - details: display text (e.g., "$10 monthly Uber Cash")
    - frequency: billing frequency
    - default_period_value_cents: face value per billing period
    - overrides: per-period face values, applied in order (later wins)
    - default_effective_value_cents / _proportion / _explanation: catalog's
      own realism discount; cents wins over proportion when both are set
    """
    model_config = _CATALOG_CONFIG

    credit_id: str
    details: Optional[str] = None
    frequency: CreditFrequency = CreditFrequency.UNSPECIFIED
    default_period_value_cents: int = 0
    overrides: list[PeriodOverride] = Field(default_factory=list)
    default_effective_value_cents: Optional[int] = None
    default_effective_value_proportion: Optional[float] = None
    default_effective_value_explanation: Optional[str] = None


# =============================================================================
# Catalog: benefit variants
# =============================================================================

class TravelStatusType(str, Enum):
    UNSPECIFIED = "unspecified"
    HOTEL_ELITE_STATUS = "hotel_elite_status"
    AIRLINE_ELITE_STATUS = "airline_elite_status"
    CAR_RENTAL_ELITE_STATUS = "car_rental_elite_status"


class CoverageType(str, Enum):
    UNSPECIFIED = "unspecified"
    PRIMARY = "primary"
    SECONDARY = "secondary"


class LoungeNetwork(str, Enum):
    UNSPECIFIED = "network_unspecified"
    PRIORITY_PASS_SELECT = "priority_pass_select"
    CENTURION_LOUNGE = "centurion_lounge"
    DELTA_SKY_CLUB = "delta_sky_club"
    CAPITAL_ONE_LOUNGE = "capital_one_lounge"
    CHASE_SAPPHIRE_LOUNGE = "chase_sapphire_lounge"
    UNITED_CLUB = "united_club"
    ADMIRALS_CLUB = "admirals_club"
    PLAZA_PREMIUM_LOUNGE = "plaza_premium_lounge"


class AdditionalService(str, Enum):
    UNSPECIFIED = "unspecified"
    RESTAURANT = "restaurant"
    SPA = "spa"


class TravelStatusBenefit(BaseModel):
    model_config = _CATALOG_CONFIG

    kind: Literal["travel_status"] = "travel_status"
    status_type: TravelStatusType = TravelStatusType.UNSPECIFIED
    description: Optional[str] = None


class PointPerkBenefit(BaseModel):
    model_config = _CATALOG_CONFIG

    kind: Literal["point_perk"] = "point_perk"
    description: Optional[str] = None


class CarRentalInsuranceBenefit(BaseModel):
    model_config = _CATALOG_CONFIG

    kind: Literal["car_rental_insurance"] = "car_rental_insurance"
    coverage_type: CoverageType = CoverageType.UNSPECIFIED
    notes: Optional[str] = None


class LoungeAccessBenefit(BaseModel):
    """guest_count below zero means unlimited guests."""
    model_config = _CATALOG_CONFIG

    kind: Literal["lounge_access"] = "lounge_access"
    network: LoungeNetwork = LoungeNetwork.UNSPECIFIED
    guest_count: int = 0
    included_services: list[AdditionalService] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class FeeReimbursementBenefit(BaseModel):
    model_config = _CATALOG_CONFIG

    kind: Literal["fee_reimbursement"] = "fee_reimbursement"
    details: Optional[str] = None


class BaggageBenefit(BaseModel):
    model_config = _CATALOG_CONFIG

    kind: Literal["baggage"] = "baggage"
    free_checked_bags_count: int = 0


class GenericBenefit(BaseModel):
    model_config = _CATALOG_CONFIG

    kind: Literal["generic"] = "generic"
    description: Optional[str] = None


BenefitVariant = Annotated[
    Union[
        TravelStatusBenefit,
        PointPerkBenefit,
        CarRentalInsuranceBenefit,
        LoungeAccessBenefit,
        FeeReimbursementBenefit,
        BaggageBenefit,
        GenericBenefit,
    ],
    Field(discriminator="kind"),
]


class OtherBenefit(BaseModel):
    """
    A qualitative or non-recurring perk attached to a card.

    Fields:
    - benefit_id: unique within a card
    - variant: exactly one benefit payload, discriminated by its `kind`
    - default_effective_value_*: same precedence rules as Credit
    """
    model_config = _CATALOG_CONFIG

    benefit_id: str
    variant: BenefitVariant
    default_effective_value_cents: Optional[int] = None
    default_effective_value_proportion: Optional[float] = None
    default_effective_value_explanation: Optional[str] = None


class CreditCard(BaseModel):
    """card_type other than business counts as a personal card."""
    model_config = _CATALOG_CONFIG

    card_id: str
    name: Optional[str] = None
    issuer: Optional[str] = None
    card_type: CardType = CardType.UNSPECIFIED
    annual_fee_cents: int = Field(default=0, ge=0)
    credits: list[Credit] = Field(default_factory=list)
    other_benefits: list[OtherBenefit] = Field(default_factory=list)


class CreditCardDatabase(BaseModel):
    model_config = _CATALOG_CONFIG

    cards: list[CreditCard] = Field(default_factory=list)


# =============================================================================
# User valuation data (persisted)
# =============================================================================

class CustomValue(BaseModel):
    """
    A user's replacement for a catalog default.

    Fields:
    - cents: absolute annual value; wins over proportion when both are set
    - proportion: fraction (0-1) of the raw value
    - explanation: free-text reason
    """
    cents: Optional[int] = None
    proportion: Optional[float] = None
    explanation: Optional[str] = None


CreditValuationOverride = CustomValue
BenefitValuationOverride = CustomValue


class CustomAdjustment(BaseModel):
    """A manual line item; value_cents is signed and per billing period."""
    custom_adjustment_id: Optional[str] = None
    description: Optional[str] = None
    value_cents: int = 0
    frequency: CreditFrequency = CreditFrequency.ANNUAL


class UserCardValuation(BaseModel):
    credit_valuations: dict[str, CustomValue] = Field(default_factory=dict)
    other_benefit_valuations: dict[str, CustomValue] = Field(default_factory=dict)
    custom_adjustments: list[CustomAdjustment] = Field(default_factory=list)


class ValuationProfile(BaseModel):
    """
    A named collection of a user's overrides across all cards.

    created_at is fixed at the first save; updated_at is refreshed on every
    save. Both are set by the profile store.
    """
    profile_id: str = ""
    card_valuations: dict[str, UserCardValuation] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("profile_id")
    @classmethod
    def strip_profile_id(cls, v: str) -> str:
        return v.strip()


class UserAccountData(BaseModel):
    profiles: dict[str, ValuationProfile] = Field(default_factory=dict)
    active_profile_id: str = ""


# =============================================================================
# Computed results
# =============================================================================

@dataclass
class CreditLine:
    """
    One credit as shown on a card.

    Fields:
    - raw_cents: undiscounted annual face value
    - effective_cents: value the user actually realizes
    - color / rank: qualitative tier and its sort weight
    - tooltip: resolved explanation text
    """
    credit_id: str
    details: str
    raw_cents: int
    effective_cents: int
    color: ChipColor
    rank: int
    tooltip: str


@dataclass
class BenefitLine:
    benefit_id: str
    details: str
    effective_cents: int
    color: ChipColor
    tooltip: str


@dataclass
class AdjustmentLine:
    custom_adjustment_id: Optional[str]
    description: str
    annual_cents: int
    color: ChipColor


@dataclass
class CardValuationSummary:
    """
    Everything presentation needs to render one card.

    Fields:
    - net_worth_cents: credits + custom adjustments - annual fee
    - credits: sorted by color rank, then effective value (both descending)
    - benefits: visible benefits only, catalog order
    - adjustments: sorted by annual value (descending)
    """
    card_id: str
    name: str
    annual_fee_cents: int
    net_worth_cents: int
    credits: list[CreditLine] = field(default_factory=list)
    benefits: list[BenefitLine] = field(default_factory=list)
    adjustments: list[AdjustmentLine] = field(default_factory=list)
