from .catalog import router as catalog_router
from .valuation import router as valuation_router
from .profile import router as profile_router

__all__ = [
    "catalog_router",
    "valuation_router",
    "profile_router",
]
