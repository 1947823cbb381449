# backend/classbook/routes/v1/occurrences.py
"""
Occurrence materialization endpoint.

The client sends only the occurrence key; everything else is re-derived
from the stored template.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_current_user, get_materialization_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.occurrence import (
    MaterializeOccurrenceRequest,
    MaterializeOccurrenceResponse,
    ParticipantResponse,
)
from ...services.materialization_service import MaterializationService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["occurrences-v1"])


@router.post("/materialize-occurrence", response_model=MaterializeOccurrenceResponse)
async def materialize_occurrence(
    payload: MaterializeOccurrenceRequest,
    current_user: User = Depends(get_current_user),
    materialization_service: MaterializationService = Depends(get_materialization_service),
) -> MaterializeOccurrenceResponse:
    """Materialize a virtual occurrence; repeated calls return the same class."""
    try:
        result = await asyncio.to_thread(
            materialization_service.materialize,
            payload.template_id,
            payload.occurrence_start,
            current_user,
            payload.trigger_reason,
        )
    except DomainException as e:
        handle_domain_exception(e)

    row = result.materialized_class
    return MaterializeOccurrenceResponse(
        materialized_class_id=row.id,
        template_id=row.template_id,
        occurrence_start=row.occurrence_start,
        status=row.status,
        participants=[
            ParticipantResponse(student_id=p.student_id, status=p.status)
            for p in result.participants
        ],
        outcome=result.outcome,
    )
