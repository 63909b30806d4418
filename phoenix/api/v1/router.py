from fastapi import APIRouter
from phoenix.api.v1.endpoints import claims, config

api_router = APIRouter()

api_router.include_router(claims.router, prefix="/claims", tags=["Claims"])
api_router.include_router(config.router, prefix="/config", tags=["Configuration"])

__all__ = ["api_router"]
