"""HTTP interface: FastAPI dependencies and routers."""

from fastapi import APIRouter

from .routers import designs, health, tokenizations


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(designs.router, prefix="/designs", tags=["designs"])
    router.include_router(tokenizations.router, prefix="/tokenizations", tags=["tokenizations"])
    router.include_router(health.router, tags=["health"])
    return router


__all__ = ["create_api_router"]
