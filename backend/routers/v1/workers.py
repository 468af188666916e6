"""
Worker API Routes

Worker directory, worker detail, monthly hours calendar and the hours
registry export, all read from the workforce API on the operator's behalf.
"""

import calendar
import io
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from backend.middleware.auth import CurrentUser, get_current_user
from backend.schemas.worker import (
    HoursRegistryRequest,
    WorkerDetailResponse,
    WorkerListResponse,
    WorkerSummary,
)
from backend.services.workforce import (
    external_error_to_http,
    get_workforce,
    load_worker,
    load_worker_directory,
)
from engines.schemas.hours import WorkerHoursSummary
from engines.services.autofill import build_contract_groups
from integrations.base import ExternalAPIError, WorkforceIntegration
from reporting.hours_registry import (
    HoursRegistryError,
    build_worker_registry,
    generate_hours_registry_xlsx,
)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get(
    "/",
    response_model=WorkerListResponse,
    summary="List workers",
    description="Worker directory, optionally filtered by name or email.",
)
async def list_workers(
    q: str | None = Query(None, description="Case-insensitive search on name and email"),
    refresh: bool = Query(False, description="Bypass the directory cache"),
    user: CurrentUser = Depends(get_current_user),
    workforce: WorkforceIntegration = Depends(get_workforce),
) -> WorkerListResponse:
    directory = await load_worker_directory(workforce, user, refresh=refresh)

    workers = directory.workers
    if q and q.strip():
        needle = q.strip().casefold()
        workers = [
            worker
            for worker in workers
            if needle in worker.name.casefold()
            or needle in (worker.email or "").casefold()
            or needle in (worker.secondary_email or "").casefold()
        ]

    items = sorted(
        (WorkerSummary.from_worker(worker) for worker in workers),
        key=lambda item: item.name.casefold(),
    )
    return WorkerListResponse(
        items=items,
        total=len(items),
        company_lookup=directory.company_lookup,
    )


@router.get(
    "/{worker_id}",
    response_model=WorkerDetailResponse,
    summary="Get worker",
)
async def get_worker(
    worker_id: str,
    user: CurrentUser = Depends(get_current_user),
    workforce: WorkforceIntegration = Depends(get_workforce),
) -> WorkerDetailResponse:
    """Worker profile with contracts grouped per company for hour entry."""
    worker, directory = await load_worker(workforce, user, worker_id)
    return WorkerDetailResponse(
        worker=worker,
        contract_groups=build_contract_groups(worker.contracts, directory.company_lookup),
        company_lookup=directory.company_lookup,
    )


@router.get(
    "/{worker_id}/hours",
    response_model=WorkerHoursSummary,
    summary="Get worker hours calendar",
    description="Daily hours and notes of a worker for one month.",
)
async def get_worker_hours(
    worker_id: str,
    year: int | None = Query(None, ge=2000, le=2100),
    month: int | None = Query(None, ge=1, le=12),
    user: CurrentUser = Depends(get_current_user),
    workforce: WorkforceIntegration = Depends(get_workforce),
) -> WorkerHoursSummary:
    today = date.today()
    directory = await load_worker_directory(workforce, user)
    try:
        return await workforce.fetch_worker_hours_summary(
            worker_id,
            year or today.year,
            month or today.month,
            company_lookup=directory.company_lookup,
        )
    except ExternalAPIError as e:
        raise external_error_to_http(e) from e


@router.post(
    "/hours-registry",
    summary="Export hours registry",
    description="Excel workbook with hours per company and daily sheets for the selected workers.",
    responses={200: {"content": {XLSX_MEDIA_TYPE: {}}}},
)
async def export_hours_registry(
    request: HoursRegistryRequest,
    user: CurrentUser = Depends(get_current_user),
    workforce: WorkforceIntegration = Depends(get_workforce),
) -> StreamingResponse:
    directory = await load_worker_directory(workforce, user)

    registries = []
    for worker_id in dict.fromkeys(request.worker_ids):
        worker = directory.get(worker_id)
        if worker is None:
            raise HTTPException(status_code=404, detail=f"Worker not found: {worker_id}")
        try:
            summary = await workforce.fetch_worker_hours_summary(
                worker_id,
                request.year,
                request.month,
                company_lookup=directory.company_lookup,
            )
        except ExternalAPIError as e:
            raise external_error_to_http(e) from e
        registries.append(
            build_worker_registry(
                worker, summary, request.year, request.month, directory.company_lookup
            )
        )

    start = date(request.year, request.month, 1)
    end = date(request.year, request.month, calendar.monthrange(request.year, request.month)[1])
    range_label = f"{start:%d/%m/%Y} al {end:%d/%m/%Y}"
    try:
        content = generate_hours_registry_xlsx(registries, range_label)
    except HoursRegistryError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    filename = f"control-horario-{start.isoformat()}-al-{end.isoformat()}.xlsx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
