# Response Models
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class OverviewStats(BaseModel):
    total_items: int
    items_resolved: int

    claims_pending: int
    claims_approved_current_month: int
    claims_rejected_current_month: int
    claims_resolved_current_month: int


class ClaimDetail(BaseModel):
    id: str
    item_id: str
    item_type: str
    item_title: str
    item_owner_id: int
    claimer_name: str
    claimer_id: int
    claimer_email: str
    status: str
    created_at: datetime
    claim_message: str
    decided_at: Optional[datetime]
    contact_shared: bool


class ClaimEventRead(BaseModel):
    id: int
    claim_id: str
    action: str
    actor_id: int
    actor_role: str
    note: Optional[str]
    created_at: datetime
