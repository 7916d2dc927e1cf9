import uuid
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select, func, and_

from app.db.db import get_session
from app.models.claim import PENDING_STATUSES, Claim, ClaimStatus
from app.models.item import Item, ItemStatus
from app.schemas.admin_schemas import ClaimDetail, ClaimEventRead, OverviewStats
from app.services.actor import Actor
from app.services.claim_lifecycle import ClaimLifecycle
from app.services.claim_store import ClaimStore
from app.utils.auth_helper import require_admin

router = APIRouter()


def _count_decided(store: ClaimStore, status: ClaimStatus, column, since: datetime) -> int:
    return store.count(
        select(func.count(Claim.id)).where(
            and_(
                column >= since,
                Claim.status == status,
            )
        )
    )


@router.get("/stats", response_model=OverviewStats)
def get_overview_stats(
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin)
):
    """Get claim statistics for the admin dashboard"""
    now = datetime.now(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    store = ClaimStore(session)

    total_items = store.count(select(func.count(Item.id)))

    items_resolved = store.count(
        select(func.count(Item.id)).where(Item.status == ItemStatus.resolved)
    )

    claims_pending = store.count(
        select(func.count(Claim.id)).where(Claim.status.in_(PENDING_STATUSES))
    )

    # Approved claims that later resolved still count for the month they were approved
    claims_approved = store.count(
        select(func.count(Claim.id)).where(Claim.approved_at >= month_start)
    )

    return OverviewStats(
        total_items=total_items,
        items_resolved=items_resolved,
        claims_pending=claims_pending,
        claims_approved_current_month=claims_approved,
        claims_rejected_current_month=_count_decided(store, ClaimStatus.rejected, Claim.rejected_at, month_start),
        claims_resolved_current_month=_count_decided(store, ClaimStatus.resolved, Claim.resolved_at, month_start),
    )


@router.get("/claims", response_model=List[ClaimDetail])
def get_claims_for_moderation(
    status: Optional[ClaimStatus] = None,
    limit: int = Query(50, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin)
):
    """Get claims for moderation"""
    results = ClaimLifecycle(session).all_claims(admin, status, limit)

    claims = []

    for claim in results:
        claims.append(ClaimDetail(
            id=str(claim.id),
            item_id=str(claim.item_id),
            item_type=claim.item_type.value,
            item_title=claim.item_title,
            item_owner_id=claim.item_owner_id,
            claimer_name=claim.claimant_name,
            claimer_id=claim.claimant_id,
            claimer_email=claim.claimant_email,
            status=claim.status.canonical().value,
            created_at=claim.created_at,
            claim_message=claim.claim_message,
            decided_at=claim.approved_at or claim.rejected_at,
            contact_shared=claim.contact_shared_at is not None,
        ))

    return claims


@router.get("/claims/{claim_id}/events", response_model=List[ClaimEventRead])
def get_claim_events(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin)
):
    """Audit trail for a claim, including after an admin delete"""
    events = ClaimLifecycle(session).events(admin, claim_id)

    return [
        ClaimEventRead(
            id=event.id,
            claim_id=str(event.claim_id),
            action=event.action,
            actor_id=event.actor_id,
            actor_role=event.actor_role,
            note=event.note,
            created_at=event.created_at,
        )
        for event in events
    ]
