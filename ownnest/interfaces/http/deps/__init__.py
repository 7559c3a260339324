"""Reusable FastAPI dependencies."""

from .container import get_container, get_design_gateway, get_orchestrator

__all__ = [
    "get_container",
    "get_design_gateway",
    "get_orchestrator",
]
