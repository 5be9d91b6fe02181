"""API v1 router aggregator."""

from fastapi import APIRouter

from app.api.v1 import imports

api_router = APIRouter(tags=["API v1"])

api_router.include_router(imports.router, prefix="/imports", tags=["Imports"])
