"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DesignBase(BaseModel):
    owner_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)
    fabric: str = Field(..., min_length=1)
    buttons: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1)


class DesignCreate(DesignBase):
    pass


class DesignResponse(DesignBase):
    model_config = ConfigDict(from_attributes=True)


class DesignListResponse(BaseModel):
    owner_id: str
    total: int
    designs: list[DesignResponse]


class LedgerAccountResponse(BaseModel):
    address: str
    program_id: str

    model_config = ConfigDict(from_attributes=True)


class JobErrorResponse(BaseModel):
    kind: str
    message: str


class TokenizationJobResponse(BaseModel):
    id: str
    owner_id: str
    status: str
    attempts: int
    design_count: int
    payload_sha256: Optional[str] = None
    account: Optional[LedgerAccountResponse] = None
    signature: Optional[str] = None
    error: Optional[JobErrorResponse] = None
    created_at: datetime
    updated_at: datetime


class TokenizationJobListResponse(BaseModel):
    owner_id: str
    jobs: list[TokenizationJobResponse]


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    cluster: str
    in_flight_jobs: int = 0


class OnChainDesign(BaseModel):
    title: str
    color: str
    fabric: str
    buttons: str
    image_url: str = Field(..., alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)


class OnChainDesignsResponse(BaseModel):
    owner_id: str
    account: LedgerAccountResponse
    designs: list[OnChainDesign]
