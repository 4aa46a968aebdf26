from app.services.catalog_service import CatalogService
from app.services.errors import ServiceError
from app.services.storage_service import SqlAlchemyStorage
from app.services.valuation_service import ValuationService

__all__ = [
    "CatalogService",
    "ServiceError",
    "SqlAlchemyStorage",
    "ValuationService",
]
