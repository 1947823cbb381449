# backend/classbook/routes/v1/cancellations.py
"""
Cancellation endpoints.

Preview never writes. Cancelling a virtual occurrence materializes it
first so the cancellation is recorded on a durable class.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_cancellation_service, get_current_user
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.cancellation import (
    AmnestyResponse,
    CancellationPreviewRequest,
    CancellationRequest,
    CancellationResponse,
    ChargeDecisionResponse,
)
from ...services.cancellation_service import CancellationService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cancellations-v1"])


@router.post("/cancellations/preview", response_model=ChargeDecisionResponse)
async def preview_cancellation(
    payload: CancellationPreviewRequest,
    current_user: User = Depends(get_current_user),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> ChargeDecisionResponse:
    try:
        decision = await asyncio.to_thread(
            cancellation_service.preview, payload.occurrence.to_domain(), current_user
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ChargeDecisionResponse.from_decision(decision)


@router.post("/cancellations", response_model=CancellationResponse)
async def cancel_occurrence(
    payload: CancellationRequest,
    current_user: User = Depends(get_current_user),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> CancellationResponse:
    try:
        result = await asyncio.to_thread(
            cancellation_service.cancel,
            payload.occurrence.to_domain(),
            current_user,
            payload.reason,
        )
    except DomainException as e:
        handle_domain_exception(e)
    row = result.materialized_class
    return CancellationResponse(
        class_id=row.id,
        class_status=row.status,
        class_cancelled=result.class_cancelled,
        cancelled_student_ids=list(result.cancelled_student_ids),
        decision=ChargeDecisionResponse.from_decision(result.decision),
        materialization_outcome=result.materialization_outcome,
    )


@router.post(
    "/classes/{class_id}/participants/{student_id}/amnesty",
    response_model=AmnestyResponse,
)
async def grant_amnesty(
    class_id: str,
    student_id: str,
    current_user: User = Depends(get_current_user),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> AmnestyResponse:
    """Waive a late-cancellation charge for one student (class owner only)."""
    try:
        participant = await asyncio.to_thread(
            cancellation_service.grant_amnesty, class_id, student_id, current_user
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AmnestyResponse(
        class_id=participant.class_id,
        student_id=participant.student_id,
        amnesty_granted=participant.amnesty_granted,
        amnesty_granted_by_id=participant.amnesty_granted_by_id,
        amnesty_granted_at=participant.amnesty_granted_at,
        charge_applied=participant.charge_applied,
    )
