"""Providers that read the application container off ``app.state``."""

from fastapi import Depends, Request

from ownnest.core.container import ApplicationContainer
from ownnest.domain.designs import DesignGateway
from ownnest.domain.tokenization import TokenizationOrchestrator


def get_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


def get_design_gateway(container: ApplicationContainer = Depends(get_container)) -> DesignGateway:
    return container.designs


def get_orchestrator(container: ApplicationContainer = Depends(get_container)) -> TokenizationOrchestrator:
    return container.orchestrator


__all__ = ["get_container", "get_design_gateway", "get_orchestrator"]
