"""Design record endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ownnest.domain.designs import DesignGateway, DesignRecord, DesignValidationError
from ownnest.interfaces.http.deps import get_design_gateway
from ownnest.schemas import DesignCreate, DesignListResponse, DesignResponse

router = APIRouter()


def _to_schema(record: DesignRecord) -> DesignResponse:
    return DesignResponse.model_validate(record)


@router.post("", response_model=DesignResponse, status_code=status.HTTP_201_CREATED, summary="Save a design record")
async def create_design(payload: DesignCreate, gateway: DesignGateway = Depends(get_design_gateway)):
    try:
        record = DesignRecord.create(**payload.model_dump())
        saved = await gateway.save_design(record)
    except DesignValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "fields": exc.fields},
        ) from exc
    return _to_schema(saved)


@router.get("", response_model=DesignListResponse, summary="List an owner's designs in insertion order")
async def list_designs(
    owner_id: str = Query(..., min_length=1),
    gateway: DesignGateway = Depends(get_design_gateway),
):
    records = await gateway.list_designs(owner_id)
    return DesignListResponse(
        owner_id=owner_id,
        total=len(records),
        designs=[_to_schema(record) for record in records],
    )
