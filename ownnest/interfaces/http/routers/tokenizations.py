"""Tokenization job endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from ownnest.core.container import ApplicationContainer
from ownnest.domain.tokenization import (
    ErrorKind,
    JobNotFoundError,
    JobStatus,
    TokenizationError,
    TokenizationJob,
    TokenizationOrchestrator,
    read_designs,
)
from ownnest.interfaces.http.deps import get_container, get_orchestrator
from ownnest.schemas import (
    JobErrorResponse,
    LedgerAccountResponse,
    OnChainDesignsResponse,
    TokenizationJobListResponse,
    TokenizationJobResponse,
)

router = APIRouter()


def _to_schema(job: TokenizationJob) -> TokenizationJobResponse:
    return TokenizationJobResponse(
        id=job.id,
        owner_id=job.owner_id,
        status=job.status.value,
        attempts=job.attempts,
        design_count=job.design_count,
        payload_sha256=job.payload_sha256,
        account=LedgerAccountResponse.model_validate(job.account) if job.account else None,
        signature=job.signature,
        error=JobErrorResponse(kind=job.error.kind.value, message=job.error.message) if job.error else None,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def _job_response(job: TokenizationJob, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=_to_schema(job).model_dump(mode="json"))


@router.post(
    "/{owner_id}",
    response_model=TokenizationJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start tokenizing an owner's designs",
)
async def start_tokenization(owner_id: str, orchestrator: TokenizationOrchestrator = Depends(get_orchestrator)):
    job = orchestrator.start(owner_id)
    if job.error is not None and job.error.kind is ErrorKind.CONFLICT:
        return _job_response(job, status.HTTP_409_CONFLICT)
    if job.error is not None and job.error.kind is ErrorKind.VALIDATION:
        return _job_response(job, status.HTTP_422_UNPROCESSABLE_ENTITY)
    return _to_schema(job)


@router.get("/{owner_id}", response_model=TokenizationJobResponse, summary="Current or most recent job")
async def get_tokenization(owner_id: str, orchestrator: TokenizationOrchestrator = Depends(get_orchestrator)):
    try:
        job = await orchestrator.get_job(owner_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_schema(job)


@router.get("/{owner_id}/history", response_model=TokenizationJobListResponse, summary="Journaled jobs, newest first")
async def list_tokenizations(
    owner_id: str,
    limit: int = Query(20, ge=1, le=200),
    orchestrator: TokenizationOrchestrator = Depends(get_orchestrator),
):
    jobs = await orchestrator.history(owner_id, limit=limit)
    return TokenizationJobListResponse(owner_id=owner_id, jobs=[_to_schema(job) for job in jobs])


@router.delete(
    "/{owner_id}",
    response_model=TokenizationJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Cancel a job that has not started submitting",
)
async def cancel_tokenization(owner_id: str, orchestrator: TokenizationOrchestrator = Depends(get_orchestrator)):
    try:
        job = await orchestrator.get_job(owner_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    try:
        honored = orchestrator.cancel(owner_id)
    except JobNotFoundError:
        # Known only from the journal: it finished in an earlier process.
        honored = False
    if not honored:
        return _job_response(job, status.HTTP_409_CONFLICT)
    return _to_schema(job)


@router.get(
    "/{owner_id}/designs",
    response_model=OnChainDesignsResponse,
    summary="Read the designs stored by the owner's latest tokenized account",
)
async def read_tokenized_designs(owner_id: str, container: ApplicationContainer = Depends(get_container)):
    try:
        job = await container.orchestrator.get_job(owner_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if job.status is not JobStatus.TOKENIZED or job.account is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"latest job is {job.status.value}")
    try:
        designs = await read_designs(container.rpc, job.account, commitment=container.settings.ledger.commitment)
    except TokenizationError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"kind": exc.kind.value, "message": exc.reason},
        ) from exc
    return OnChainDesignsResponse(
        owner_id=owner_id,
        account=LedgerAccountResponse.model_validate(job.account),
        designs=designs,
    )
