"""Liveness endpoint."""

from fastapi import APIRouter, Depends

from ownnest import __version__
from ownnest.core.container import ApplicationContainer
from ownnest.interfaces.http.deps import get_container
from ownnest.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Service health")
async def health(container: ApplicationContainer = Depends(get_container)):
    ledger = container.settings.ledger
    return HealthResponse(
        version=__version__,
        cluster=ledger.rpc_url or ledger.cluster,
        in_flight_jobs=len(container.orchestrator.in_flight()),
    )
