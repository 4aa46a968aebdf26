from fastapi import APIRouter, Depends

from valuation.models import CreditCard

from app.dependencies.services import get_catalog_service
from app.schemas.valuation_schemas import CatalogProblemsResponse
from app.services.catalog_service import CatalogService

router = APIRouter(
    prefix="/api/v1/catalog",
    tags=["catalog"]
)


@router.get("", response_model=list[CreditCard])
def get_catalog(service: CatalogService = Depends(get_catalog_service)):
    return service.get_catalog()


@router.get("/problems", response_model=CatalogProblemsResponse)
def get_catalog_problems(service: CatalogService = Depends(get_catalog_service)):
    """Data-quality problems found in the loaded catalog (empty when clean)."""
    return {"problems": service.get_problems()}


@router.get("/{card_id}", response_model=CreditCard)
def get_card(card_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_card(card_id)
