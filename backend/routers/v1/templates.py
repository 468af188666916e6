"""
Template API Routes

CRUD for editable report templates, the token catalogue and PDF rendering.
"""

import io
import logging
import re
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.session import get_db
from backend.middleware.auth import CurrentUser, get_current_user
from backend.models.report_template import ReportTemplateRecord
from backend.routers.v1.calculations import get_calculation_or_404, run_calculation
from backend.schemas.template import TemplateRenderRequest, TemplateResponse, TemplateSummary
from backend.services.workforce import external_error_to_http, get_workforce, load_worker
from engines.schemas.salary import CalculationResult
from integrations.base import ExternalAPIError, WorkforceIntegration
from reporting.pdf_generator import generate_template_pdf
from reporting.schemas import AVAILABLE_TOKENS, ReportTemplate, TokenCategory, default_template
from reporting.template_renderer import build_render_context

logger = logging.getLogger(__name__)

router = APIRouter()

COPY_SUFFIX = " (copia)"


def _to_response(record: ReportTemplateRecord) -> TemplateResponse:
    template = ReportTemplate.model_validate(
        {**record.definition, "name": record.name, "description": record.description}
    )
    return TemplateResponse(
        id=record.id,
        template=template,
        created_by=record.created_by,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _definition(template: ReportTemplate) -> dict:
    """Layout document stored next to the name and description columns."""
    return template.model_dump(mode="json", exclude={"name", "description"})


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.casefold()).strip("-") or "plantilla"


async def get_template_or_404(template_id: UUID, db: AsyncSession) -> ReportTemplateRecord:
    """Helper to get a template or raise 404."""
    result = await db.execute(
        select(ReportTemplateRecord).where(ReportTemplateRecord.id == template_id)
    )
    record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template {template_id} not found",
        )
    return record


@router.get("/tokens", response_model=list[TokenCategory], summary="Token catalogue")
async def list_tokens(
    user: CurrentUser = Depends(get_current_user),
) -> list[TokenCategory]:
    """Placeholders available inside template text, grouped by category."""
    return AVAILABLE_TOKENS


@router.get("/default", response_model=ReportTemplate, summary="Default template")
async def get_default_template(
    user: CurrentUser = Depends(get_current_user),
) -> ReportTemplate:
    return default_template()


@router.get("/", response_model=list[TemplateSummary], summary="List templates")
async def list_templates(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[TemplateSummary]:
    result = await db.execute(
        select(ReportTemplateRecord).order_by(ReportTemplateRecord.updated_at.desc())
    )
    return [TemplateSummary.model_validate(record) for record in result.scalars().all()]


@router.post(
    "/",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create template",
)
async def create_template(
    template: ReportTemplate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TemplateResponse:
    record = ReportTemplateRecord(
        name=template.name,
        description=template.description,
        definition=_definition(template),
        created_by=user.id,
    )
    db.add(record)
    await db.flush()
    await db.refresh(record)

    logger.info(f"Created template {record.id} ({record.name})")
    return _to_response(record)


@router.get("/{template_id}", response_model=TemplateResponse, summary="Get template")
async def get_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TemplateResponse:
    record = await get_template_or_404(template_id, db)
    return _to_response(record)


@router.put("/{template_id}", response_model=TemplateResponse, summary="Update template")
async def update_template(
    template_id: UUID,
    template: ReportTemplate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TemplateResponse:
    record = await get_template_or_404(template_id, db)
    record.name = template.name
    record.description = template.description
    record.definition = _definition(template)
    await db.flush()
    await db.refresh(record)
    return _to_response(record)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete template",
)
async def delete_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> None:
    record = await get_template_or_404(template_id, db)
    await db.delete(record)
    await db.flush()
    logger.info(f"Deleted template {template_id}")


@router.post(
    "/{template_id}/duplicate",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate template",
)
async def duplicate_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TemplateResponse:
    """Copy a template under the same name with a " (copia)" suffix."""
    source = await get_template_or_404(template_id, db)
    name = source.name[: 255 - len(COPY_SUFFIX)] + COPY_SUFFIX

    record = ReportTemplateRecord(
        name=name,
        description=source.description,
        definition=dict(source.definition),
        created_by=user.id,
    )
    db.add(record)
    await db.flush()
    await db.refresh(record)
    return _to_response(record)


@router.post(
    "/{template_id}/render",
    summary="Render template as PDF",
    description="Fill the template with a worker's data for one month and download it.",
)
async def render_template(
    template_id: UUID,
    request: TemplateRenderRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    workforce: WorkforceIntegration = Depends(get_workforce),
):
    record = await get_template_or_404(template_id, db)
    template = _to_response(record).template

    worker, directory = await load_worker(workforce, user, request.worker_id)

    hours_summary = None
    if request.include_hours:
        try:
            hours_summary = await workforce.fetch_worker_hours_summary(
                worker.id,
                request.year,
                request.month,
                company_lookup=directory.company_lookup,
            )
        except ExternalAPIError as e:
            raise external_error_to_http(e) from e

    calculation: CalculationResult | None = None
    if request.calculation_id:
        saved = await get_calculation_or_404(request.calculation_id, db)
        calculation = CalculationResult.model_validate(saved.result_data)
    elif request.calculation:
        calculation = run_calculation(request.calculation)

    context = build_render_context(
        worker,
        request.year,
        request.month,
        hours_summary=hours_summary,
        calculation=calculation,
    )
    pdf_bytes = generate_template_pdf(template, context)

    filename = f"{_slug(template.name)}_{_slug(worker.name)}_{request.year}-{request.month:02d}.pdf"
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
