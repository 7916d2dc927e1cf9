from enum import Enum
from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class ItemType(str, Enum):
    lost = "lost"
    found = "found"


class ItemStatus(str, Enum):
    lost = "lost"
    available = "available"
    matched = "matched"
    resolved = "resolved"


class Item(SQLModel, table=True):
    __tablename__ = "items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Reporter info
    user_id: int = Field(foreign_key="users.id", index=True)

    # Item fields
    title: str
    category: str
    description: str = ""
    location: str
    type: ItemType = Field(index=True)
    image: Optional[str] = None

    # Lifecycle, only flipped to resolved by an approved claim
    status: ItemStatus = Field(default=ItemStatus.available, index=True)
    resolved_at: Optional[datetime] = None
