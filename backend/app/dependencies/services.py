from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from valuation.profile_store import ProfileStore

from app.config import settings
from app.dependencies.db import get_db
from app.services.catalog_service import CatalogService
from app.services.storage_service import SqlAlchemyStorage
from app.services.valuation_service import ValuationService


@lru_cache
def get_catalog_service() -> CatalogService:
    # The catalog is read-only, so one instance serves every request.
    return CatalogService.from_file(settings.catalog_path)


def get_profile_store(db: Session = Depends(get_db)) -> ProfileStore:
    return ProfileStore(SqlAlchemyStorage(db), key=settings.storage_key)


def get_valuation_service(
    catalog: CatalogService = Depends(get_catalog_service),
    store: ProfileStore = Depends(get_profile_store),
) -> ValuationService:
    return ValuationService(catalog, store)
