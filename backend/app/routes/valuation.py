from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from valuation.models import UserCardValuation
from valuation.summary import FilterMode, SortOrder

from app.dependencies.services import get_valuation_service
from app.schemas.valuation_schemas import BreakevenRequest, BreakevenResponse, CardSummaryResponse, ShareResponse
from app.services.valuation_service import ValuationService

router = APIRouter(
    prefix="/api/v1/valuations",
    tags=["valuations"]
)


@router.get("/cards", response_model=list[CardSummaryResponse])
def list_card_valuations(
    sort: str = Query(default=SortOrder.NET_HIGH_TO_LOW.value),
    mode: str = Query(default=FilterMode.ALL.value),
    issuer: Optional[list[str]] = Query(default=None),
    search: Optional[str] = Query(default=None),
    service: ValuationService = Depends(get_valuation_service),
):
    """
    Valuation summary of catalog cards for the stored profile.

    Query Parameters:
    - sort: net_high_to_low (default), net_low_to_high,
      credits_high_to_low or credits_low_to_high
    - mode: all (default), personal_only or business_only
    - issuer: keep only these issuers; repeat for several
    - search: part of the card name
    """
    return service.list_summaries(sort, mode, issuer, search)


@router.get("/cards/{card_id}", response_model=CardSummaryResponse)
def get_card_valuation(card_id: str, service: ValuationService = Depends(get_valuation_service)):
    return service.get_summary(card_id)


@router.get("/cards/{card_id}/overrides", response_model=UserCardValuation)
def get_card_overrides(card_id: str, service: ValuationService = Depends(get_valuation_service)):
    """The user's raw overrides for one card (empty when none are saved)."""
    return service.get_card_valuation(card_id)


@router.put("/cards/{card_id}", response_model=CardSummaryResponse)
def put_card_valuation(
    card_id: str,
    payload: UserCardValuation,
    service: ValuationService = Depends(get_valuation_service),
):
    """
    Replace the user's valuation of one card.

    Request body:
    - credit_valuations / other_benefit_valuations keyed by id
    - custom_adjustments list

    Returns:
    - The recomputed card summary
    """
    return service.save_card_valuation(card_id, payload)


@router.delete("/cards/{card_id}", response_model=CardSummaryResponse)
def delete_card_valuation(card_id: str, service: ValuationService = Depends(get_valuation_service)):
    return service.clear_card_valuation(card_id)


@router.get("/cards/{card_id}/share", response_model=ShareResponse)
def share_card_valuation(
    card_id: str,
    format: str = Query(default="plain"),
    service: ValuationService = Depends(get_valuation_service),
):
    return {"card_id": card_id, "format": format, "text": service.share(card_id, format)}


@router.post("/cards/{card_id}/breakeven", response_model=BreakevenResponse)
def card_breakeven(
    card_id: str,
    payload: BreakevenRequest,
    service: ValuationService = Depends(get_valuation_service),
):
    """
    Spend needed on a card to reach a range of overall return rates.

    Request body:
    - cents_per_point: value of one point in cents
    - include_net_worth: count the card's net worth (default true)
    - spendings: description, multiplier, amount per period, frequency,
      and mode (linear spend scales, fixed spend stays put)

    Returns:
    - One row per target rate; total is null when a rate is out of reach
    """
    summary, analysis = service.breakeven(
        card_id,
        [spending.to_category() for spending in payload.spendings],
        payload.cents_per_point,
        payload.include_net_worth,
    )
    return BreakevenResponse(card_id=summary.card_id, net_worth_cents=summary.net_worth_cents, **asdict(analysis))
