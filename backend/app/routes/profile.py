from fastapi import APIRouter, Depends, Request, Response, status

from valuation.models import ValuationProfile

from app.dependencies.services import get_valuation_service
from app.schemas.valuation_schemas import RestoreResponse
from app.services.valuation_service import ValuationService

router = APIRouter(
    prefix="/api/v1/profile",
    tags=["profile"]
)


@router.get("", response_model=ValuationProfile)
def get_profile(service: ValuationService = Depends(get_valuation_service)):
    return service.get_profile()


@router.put("", response_model=ValuationProfile)
def put_profile(payload: ValuationProfile, service: ValuationService = Depends(get_valuation_service)):
    """
    Upsert-merge a profile and make it the active one.

    Validation:
    - profile_id must not be empty
    """
    return service.upsert_profile(payload)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(service: ValuationService = Depends(get_valuation_service)):
    service.clear_profile()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/backup")
def download_backup(service: ValuationService = Depends(get_valuation_service)):
    backup = service.export_backup()
    return Response(
        content=backup.content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{backup.filename}"'},
    )


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(request: Request, service: ValuationService = Depends(get_valuation_service)):
    """
    Replace all stored valuation data with a backup document.

    Request body:
    - The JSON backup file exactly as downloaded from /backup
    """
    content = (await request.body()).decode("utf-8", errors="replace")
    return RestoreResponse.from_account(service.restore_backup(content))
