# backend/classbook/routes/v1/templates.py
import asyncio
from datetime import datetime
import logging

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_current_user, get_template_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.class_template import (
    ClassTemplateCreate,
    ClassTemplateResponse,
    EndRecurrenceRequest,
)
from ...schemas.occurrence import OccurrenceListResponse, OccurrenceResponse
from ...services.template_expander import bounded_window
from ...services.template_service import TemplateService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["templates-v1"])


@router.post("/templates", response_model=ClassTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: ClassTemplateCreate,
    current_user: User = Depends(get_current_user),
    template_service: TemplateService = Depends(get_template_service),
) -> ClassTemplateResponse:
    try:
        template = await asyncio.to_thread(template_service.create_template, current_user, payload)
    except DomainException as e:
        handle_domain_exception(e)
    return ClassTemplateResponse.model_validate(template)


@router.get("/templates/{template_id}/occurrences", response_model=OccurrenceListResponse)
async def list_template_occurrences(
    template_id: str,
    start: datetime = Query(..., description="Window start (inclusive, with offset)"),
    end: datetime = Query(..., description="Window end (exclusive, with offset)"),
    current_user: User = Depends(get_current_user),
    template_service: TemplateService = Depends(get_template_service),
) -> OccurrenceListResponse:
    """Occurrences of one template; materialized classes replace their virtual twins."""
    try:
        window = bounded_window(start, end)
        occurrences = await asyncio.to_thread(
            template_service.list_occurrences, template_id, current_user, window
        )
    except DomainException as e:
        handle_domain_exception(e)
    return OccurrenceListResponse(
        start=window.start,
        end=window.end,
        occurrences=[OccurrenceResponse.from_domain(o) for o in occurrences],
    )


@router.post("/templates/{template_id}/end-recurrence", response_model=ClassTemplateResponse)
async def end_recurrence(
    template_id: str,
    payload: EndRecurrenceRequest,
    current_user: User = Depends(get_current_user),
    template_service: TemplateService = Depends(get_template_service),
) -> ClassTemplateResponse:
    try:
        template = await asyncio.to_thread(
            template_service.end_recurrence, template_id, current_user, payload.recurrence_end
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ClassTemplateResponse.model_validate(template)
