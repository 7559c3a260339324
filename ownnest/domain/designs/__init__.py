"""Design domain services and models."""

from .exceptions import DesignError, DesignValidationError
from .gateway import DesignGateway, SqlDesignGateway
from .models import DesignRecord
from .service import DesignService

__all__ = [
    "DesignError",
    "DesignGateway",
    "DesignRecord",
    "DesignService",
    "DesignValidationError",
    "SqlDesignGateway",
]
