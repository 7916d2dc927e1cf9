"""
Persistence boundary for claims and the items they point at.

Every mutating lifecycle operation runs inside ``ClaimStore.atomic()``:

    with store.atomic():
        claim = store.get(claim_id)
        ...
        won = store.transition(claim_id, PENDING_STATUSES, ClaimStatus.approved, approved_at=now)

The block commits as one unit or rolls back entirely. Status changes go
through ``transition``, a conditional UPDATE keyed on the current status, so
of two racing writers exactly one sees ``True``.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.models.claim import BLOCKING_STATUSES, Claim, ClaimStatus
from app.models.claim_event import ClaimEvent
from app.models.item import Item, ItemStatus, ItemType
from app.services.errors import DuplicateClaim, StoreUnavailable


logger = logging.getLogger(__name__)


class ClaimStore:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def atomic(self):
        try:
            yield self.session
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            message = str(e.orig)
            if "uq_claimant_item_active" in message or "claims.claimant_id" in message:
                raise DuplicateClaim() from e
            logger.error("Integrity error while writing claim", exc_info=True)
            raise StoreUnavailable() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Claim store write failed", exc_info=True)
            raise StoreUnavailable() from e
        except Exception:
            self.session.rollback()
            raise

    def _query(self, stmt):
        try:
            return self.session.exec(stmt)
        except SQLAlchemyError as e:
            logger.error("Claim store read failed", exc_info=True)
            raise StoreUnavailable() from e

    # Reads

    def get(self, claim_id: uuid.UUID) -> Optional[Claim]:
        try:
            return self.session.get(Claim, claim_id)
        except SQLAlchemyError as e:
            logger.error("Claim store read failed", exc_info=True)
            raise StoreUnavailable() from e

    def find_active(self, claimant_id: int, item_id: uuid.UUID, item_type: ItemType) -> Optional[Claim]:
        return self._query(
            select(Claim)
            .where(Claim.claimant_id == claimant_id)
            .where(Claim.item_id == item_id)
            .where(Claim.item_type == item_type)
            .where(Claim.status.in_(BLOCKING_STATUSES))
        ).first()

    def list_for_claimant(self, claimant_id: int) -> List[Claim]:
        return self._query(
            select(Claim)
            .where(Claim.claimant_id == claimant_id)
            .order_by(Claim.created_at.desc())
        ).all()

    def list_for_item_owner(self, owner_id: int, item_type: Optional[ItemType] = None) -> List[Claim]:
        query = (
            select(Claim)
            .where(Claim.item_owner_id == owner_id)
            .order_by(Claim.created_at.desc())
        )

        if item_type:
            query = query.where(Claim.item_type == item_type)

        return self._query(query).all()

    def list_for_item(self, item_type: ItemType, item_id: uuid.UUID) -> List[Claim]:
        return self._query(
            select(Claim)
            .where(Claim.item_id == item_id)
            .where(Claim.item_type == item_type)
            .order_by(Claim.created_at.desc())
        ).all()

    def list_all(self, statuses: Optional[Iterable[ClaimStatus]] = None, limit: int = 50) -> List[Claim]:
        query = select(Claim).order_by(Claim.created_at.desc()).limit(limit)

        if statuses:
            query = query.where(Claim.status.in_(list(statuses)))

        return self._query(query).all()

    def events_for(self, claim_id: uuid.UUID) -> List[ClaimEvent]:
        return self._query(
            select(ClaimEvent)
            .where(ClaimEvent.claim_id == claim_id)
            .order_by(ClaimEvent.id)
        ).all()

    # Writes, only valid inside atomic()

    def add(self, claim: Claim) -> Claim:
        self.session.add(claim)
        self.session.flush()
        return claim

    def transition(
        self,
        claim_id: uuid.UUID,
        from_statuses: Iterable[ClaimStatus],
        to_status: ClaimStatus,
        **fields,
    ) -> bool:
        """Move a claim to ``to_status`` if it is still in one of ``from_statuses``.

        Returns False when another writer got there first.
        """
        from_statuses = list(from_statuses)
        fields.setdefault("updated_at", datetime.now(timezone.utc))

        stmt = (
            update(Claim)
            .where(Claim.id == claim_id)
            .where(Claim.status.in_(from_statuses))
            .values(status=to_status, **fields)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)

        if result.rowcount != 1:
            logger.warning("Claim %s was not in %s, skipping move to %s", claim_id, [s.value for s in from_statuses], to_status.value)
            return False

        return True

    def set_fields(self, claim_id: uuid.UUID, required_status: ClaimStatus, **fields) -> bool:
        """Update non-status fields, guarded on the claim still being in ``required_status``."""
        fields.setdefault("updated_at", datetime.now(timezone.utc))

        stmt = (
            update(Claim)
            .where(Claim.id == claim_id)
            .where(Claim.status == required_status)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def delete(self, claim_id: uuid.UUID) -> bool:
        stmt = delete(Claim).where(Claim.id == claim_id).execution_options(synchronize_session=False)
        return self.session.execute(stmt).rowcount == 1

    def record(self, claim_id: uuid.UUID, action: str, actor_id: int, actor_role: str, note: Optional[str] = None):
        self.session.add(ClaimEvent(
            claim_id=claim_id,
            action=action,
            actor_id=actor_id,
            actor_role=actor_role,
            note=note,
        ))

    def refresh(self, claim: Claim) -> Claim:
        try:
            self.session.refresh(claim)
        except SQLAlchemyError as e:
            logger.error("Claim store read failed", exc_info=True)
            raise StoreUnavailable() from e
        return claim

    def count(self, stmt) -> int:
        return self._query(stmt).one()


class ItemStore:
    """The slice of the item store the claim workflow depends on."""

    def __init__(self, session: Session):
        self.session = session

    def get_item(self, item_type: ItemType, item_id: uuid.UUID) -> Optional[Item]:
        try:
            item = self.session.get(Item, item_id)
        except SQLAlchemyError as e:
            logger.error("Item store read failed", exc_info=True)
            raise StoreUnavailable() from e

        if not item or item.type != item_type:
            return None

        return item

    def set_item_status(self, item: Item, status: ItemStatus, resolved_at: Optional[datetime] = None) -> Item:
        item.status = status
        if resolved_at is not None:
            item.resolved_at = resolved_at

        self.session.add(item)
        self.session.flush()
        return item
