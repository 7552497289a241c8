"""
Admin endpoints that settle disputes and warranty issues.
"""

from uuid import UUID

from fastapi import APIRouter

from techmarket.api.dependencies import AdminActorDep, LifecycleControllerDep
from techmarket.api.schemas.actions import (
    DisputeResolveRequest,
    DisputeResponse,
    WarrantyRecordResponse,
)
from techmarket.config.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["disputes"])


@router.post("/disputes/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: UUID,
    body: DisputeResolveRequest,
    actor: AdminActorDep,
    controller: LifecycleControllerDep,
):
    """Close a dispute. FORFEIT also forfeits a warranty hold that is still held."""
    dispute = await controller.resolve_dispute(dispute_id, body.resolution)
    logger.info(
        "Dispute resolved by admin",
        dispute_id=str(dispute_id),
        admin_id=str(actor.id) if actor.id else None,
        resolution=body.resolution.value,
    )
    return DisputeResponse.model_validate(dispute, from_attributes=True)


@router.post("/warranty-issues/{record_id}/resolve", response_model=WarrantyRecordResponse)
async def resolve_warranty_issue(
    record_id: UUID,
    actor: AdminActorDep,
    controller: LifecycleControllerDep,
):
    record = await controller.resolve_warranty_issue(record_id)
    return WarrantyRecordResponse.model_validate(record, from_attributes=True)
