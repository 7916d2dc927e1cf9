import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.claim import ClaimStatus, ContactType
from app.models.item import ItemType
from app.services.notification_dispatch import NotificationKind


class ClaimCreateRequest(BaseModel):
    item_id: uuid.UUID
    item_type: ItemType
    claim_message: str  # length rules live in ClaimLifecycle.submit
    proof_image: Optional[str] = None


class ClaimRejectRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=280)


class ClaimResolveRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)


class ContactShareRequest(BaseModel):
    contact_type: str  # parsed by ContactDisclosureFlow after the ownership check
    contact_value: str


class NotifyRequest(BaseModel):
    kind: NotificationKind
    channel_type: ContactType
    contact: Optional[str] = None  # defaults to the claimant's email for email links


class NotifyResponse(BaseModel):
    url: str
    channel_type: ContactType
    kind: NotificationKind


class ClaimRead(BaseModel):
    id: uuid.UUID
    item_id: uuid.UUID
    item_type: ItemType
    item_owner_id: int
    item_title: str
    item_category: str

    claimant_id: int
    claimant_name: str
    claimant_email: str

    claim_message: str
    proof_image_url: Optional[str] = None

    status: ClaimStatus
    rejection_reason: Optional[str] = None
    resolution_notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    # Null unless the claim is approved
    owner_contact_info: Optional[str] = None
    owner_contact_type: Optional[ContactType] = None
    contact_shared_at: Optional[datetime] = None
