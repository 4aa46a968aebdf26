from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from valuation.breakeven import SpendCategory, SpendMode
from valuation.models import ChipColor, CreditFrequency, UserAccountData


class CreditLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    credit_id: str
    details: str
    raw_cents: int
    effective_cents: int
    color: ChipColor
    rank: int
    tooltip: str


class BenefitLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    benefit_id: str
    details: str
    effective_cents: int
    color: ChipColor
    tooltip: str


class AdjustmentLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    custom_adjustment_id: Optional[str] = None
    description: str
    annual_cents: int
    color: ChipColor


class CardSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_id: str
    name: str
    annual_fee_cents: int
    net_worth_cents: int
    credits: list[CreditLineResponse]
    benefits: list[BenefitLineResponse]
    adjustments: list[AdjustmentLineResponse]


class CatalogProblemsResponse(BaseModel):
    problems: list[str]


class ShareResponse(BaseModel):
    card_id: str
    format: str
    text: str


class SpendCategoryRequest(BaseModel):
    description: str
    multiplier: float = Field(default=1.0, ge=0)
    amount: float = 0
    frequency: CreditFrequency = CreditFrequency.ANNUAL
    mode: SpendMode = SpendMode.LINEAR

    def to_category(self) -> SpendCategory:
        return SpendCategory(**self.model_dump())


class BreakevenRequest(BaseModel):
    cents_per_point: float = Field(default=1.0, ge=0)
    include_net_worth: bool = True
    spendings: list[SpendCategoryRequest] = Field(default_factory=list)


class BreakevenRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    target_percent: int
    total: Optional[float] = None
    breakdown: Optional[list[float]] = None


class BreakevenResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_id: str
    net_worth_cents: int
    total_annual_spend: float
    spend_return_rate: float
    current_rate: float
    constant_rate: Optional[float] = None
    headers: list[str]
    rows: list[BreakevenRowResponse]


class RestoreResponse(BaseModel):
    profile_count: int
    active_profile_id: Optional[str] = None

    @classmethod
    def from_account(cls, account: UserAccountData) -> "RestoreResponse":
        return cls(profile_count=len(account.profiles), active_profile_id=account.active_profile_id or None)
