from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class ClaimEvent(SQLModel, table=True):
    __tablename__ = "claim_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # No foreign key: admin_deleted rows outlive the claim they describe
    claim_id: uuid.UUID = Field(index=True)

    action: str = Field(index=True)  # submitted, approved, rejected, resolved, contact_shared, admin_deleted
    actor_id: int
    actor_role: str
    note: Optional[str] = None
