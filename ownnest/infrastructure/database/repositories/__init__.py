"""SQLAlchemy-backed repository implementations."""

from .design_repository import SqlDesignRepository
from .tokenization_job_repository import SqlTokenizationJobRepository

__all__ = [
    "SqlDesignRepository",
    "SqlTokenizationJobRepository",
]
