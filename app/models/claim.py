from enum import Enum
from typing import Optional
import uuid
from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.item import ItemType


class ClaimStatus(str, Enum):
    """Claim lifecycle states.

    pending -> approved -> resolved
    pending -> rejected

    ``pending_admin_review`` is a legacy spelling of ``pending`` that older
    rows may still carry. It is equivalent to ``pending`` everywhere; use
    ``is_pending`` / ``canonical()`` rather than comparing against the raw value.
    """

    pending = "pending"
    pending_admin_review = "pending_admin_review"
    approved = "approved"
    rejected = "rejected"
    resolved = "resolved"

    @property
    def is_pending(self) -> bool:
        return self in PENDING_STATUSES

    def canonical(self) -> "ClaimStatus":
        return ClaimStatus.pending if self.is_pending else self


PENDING_STATUSES = (ClaimStatus.pending, ClaimStatus.pending_admin_review)

# A claimant holding a claim in any of these may not file another on the same item
BLOCKING_STATUSES = PENDING_STATUSES + (ClaimStatus.approved, ClaimStatus.resolved)


class ContactType(str, Enum):
    whatsapp = "whatsapp"
    email = "email"


_blocking_sql = "status IN ({})".format(", ".join(f"'{s.value}'" for s in BLOCKING_STATUSES))


class Claim(SQLModel, table=True):
    __tablename__ = "claims"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Linked item, owner is snapshotted at creation and never rewritten
    item_id: uuid.UUID = Field(index=True)
    item_type: ItemType
    item_owner_id: int = Field(index=True)
    item_title: str
    item_category: str

    # Claimant
    claimant_id: int = Field(foreign_key="users.id", index=True)
    claimant_name: str
    claimant_email: str

    # Content (formerly claim_description / proofText / message)
    claim_message: str
    proof_image: Optional[str] = None

    status: ClaimStatus = Field(default=ClaimStatus.pending, index=True)
    rejection_reason: Optional[str] = None
    resolution_notes: Optional[str] = None

    # Disclosure, only written while approved
    owner_contact_info: Optional[str] = None
    owner_contact_type: Optional[ContactType] = None
    contact_shared_at: Optional[datetime] = None

    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    __table_args__ = (
        # One live claim per claimant per item; rejected claims don't count
        Index(
            "uq_claimant_item_active",
            "claimant_id",
            "item_id",
            "item_type",
            unique=True,
            sqlite_where=text(_blocking_sql),
            postgresql_where=text(_blocking_sql),
        ),
    )
