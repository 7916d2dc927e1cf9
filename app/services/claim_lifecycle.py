import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session

from app.models.claim import PENDING_STATUSES, Claim, ClaimStatus
from app.models.claim_event import ClaimEvent
from app.models.item import Item, ItemStatus, ItemType
from app.services.actor import Actor
from app.services.claim_store import ClaimStore, ItemStore
from app.services.errors import (
    ClaimNotFound,
    ClaimValidationError,
    DuplicateClaim,
    InvalidTransition,
    NotAuthorized,
    SelfClaimNotAllowed,
)


logger = logging.getLogger(__name__)

MIN_CLAIM_MESSAGE_LENGTH = 20
MAX_CLAIM_MESSAGE_LENGTH = 500

PROOF_IMAGE_FOLDER = "claims"


def proof_image_prefix(user_id: int) -> str:
    return f"{PROOF_IMAGE_FOLDER}/{user_id}/"


def owns_proof_image(user_id: int, key: Optional[str]) -> bool:
    """True when ``key`` sits in the user's own upload folder."""
    prefix = proof_image_prefix(user_id)
    if not key or not key.startswith(prefix) or key == prefix:
        return False

    return ".." not in key.split("/")


class ClaimLifecycle:
    """
    Claim state machine.

    Decisions (approve / reject) belong to the item owner or an admin,
    resolution and hard deletes to admins only. Every transition is applied
    with a compare-and-swap on the status column, so a repeated or racing call
    fails with InvalidTransition instead of re-stamping timestamps.
    """

    def __init__(self, session: Session):
        self.store = ClaimStore(session)
        self.items = ItemStore(session)

    # Authorization helpers

    def _missing(self, actor: Actor):
        # Non-admins can't tell a missing claim from someone else's
        if actor.is_admin:
            return ClaimNotFound()
        return NotAuthorized()

    def get_claim_for_owner(self, actor: Actor, claim_id: uuid.UUID) -> Claim:
        """Load a claim the actor may decide on: item owner or admin."""
        claim = self.store.get(claim_id)
        if not claim:
            raise self._missing(actor)

        if not actor.is_admin and claim.item_owner_id != actor.user_id:
            raise NotAuthorized()

        return claim

    def _get_claim_for_admin(self, actor: Actor, claim_id: uuid.UUID) -> Claim:
        if not actor.is_admin:
            raise NotAuthorized()

        claim = self.store.get(claim_id)
        if not claim:
            raise ClaimNotFound()

        return claim

    # Transitions

    def submit(
        self,
        actor: Actor,
        item: Item,
        claim_message: str,
        proof_image: Optional[str] = None,
    ) -> Claim:
        if item.user_id == actor.user_id:
            raise SelfClaimNotAllowed()

        message = (claim_message or "").strip()
        if not message:
            raise ClaimValidationError("Please provide details about your claim")
        if len(message) < MIN_CLAIM_MESSAGE_LENGTH:
            raise ClaimValidationError(f"Claim details must be at least {MIN_CLAIM_MESSAGE_LENGTH} characters")
        if len(message) > MAX_CLAIM_MESSAGE_LENGTH:
            raise ClaimValidationError(f"Claim details must be at most {MAX_CLAIM_MESSAGE_LENGTH} characters")

        proof_image = proof_image or None
        if proof_image and not owns_proof_image(actor.user_id, proof_image):
            logger.warning("User %s sent proof image key outside their folder: %s", actor.user_id, proof_image)
            raise ClaimValidationError("Invalid proof image")

        with self.store.atomic():
            if self.store.find_active(actor.user_id, item.id, item.type):
                raise DuplicateClaim()

            now = datetime.now(timezone.utc)
            claim = Claim(
                item_id=item.id,
                item_type=item.type,
                item_owner_id=item.user_id,
                item_title=item.title,
                item_category=item.category,
                claimant_id=actor.user_id,
                claimant_name=actor.name or actor.email,
                claimant_email=actor.email,
                claim_message=message,
                proof_image=proof_image,
                status=ClaimStatus.pending,
                created_at=now,
                updated_at=now,
            )

            self.store.add(claim)
            self.store.record(claim.id, "submitted", actor.user_id, actor.role)

        logger.info("Claim %s submitted by user %s on %s item %s", claim.id, actor.user_id, item.type.value, item.id)
        return self.store.refresh(claim)

    def approve(self, actor: Actor, claim_id: uuid.UUID) -> Claim:
        """Approve a pending claim and mark its item resolved, in one transaction.

        If the linked item has been deleted the claim is still approved; if
        writing the item fails, nothing is committed.
        """
        with self.store.atomic():
            claim = self.get_claim_for_owner(actor, claim_id)
            if not claim.status.is_pending:
                raise InvalidTransition()

            # All reads happen before the first write
            item = self.items.get_item(claim.item_type, claim.item_id)

            now = datetime.now(timezone.utc)
            won = self.store.transition(
                claim_id,
                PENDING_STATUSES,
                ClaimStatus.approved,
                approved_at=now,
                updated_at=now,
            )
            if not won:
                raise InvalidTransition()

            if item and item.status != ItemStatus.resolved:
                self.items.set_item_status(item, ItemStatus.resolved, resolved_at=now)
            elif not item:
                logger.warning("Claim %s approved but its %s item %s no longer exists", claim_id, claim.item_type.value, claim.item_id)

            self.store.record(claim_id, "approved", actor.user_id, actor.role)

        logger.info("Claim %s approved by user %s", claim_id, actor.user_id)
        return self.store.refresh(claim)

    def reject(self, actor: Actor, claim_id: uuid.UUID, reason: Optional[str] = None) -> Claim:
        reason = (reason or "").strip() or None

        with self.store.atomic():
            claim = self.get_claim_for_owner(actor, claim_id)
            if not claim.status.is_pending:
                raise InvalidTransition()

            now = datetime.now(timezone.utc)
            won = self.store.transition(
                claim_id,
                PENDING_STATUSES,
                ClaimStatus.rejected,
                rejected_at=now,
                updated_at=now,
                rejection_reason=reason,
            )
            if not won:
                raise InvalidTransition()

            self.store.record(claim_id, "rejected", actor.user_id, actor.role, note=reason)

        logger.info("Claim %s rejected by user %s", claim_id, actor.user_id)
        return self.store.refresh(claim)

    def resolve(self, actor: Actor, claim_id: uuid.UUID, notes: Optional[str] = None) -> Claim:
        """Admin sign-off once the item has physically changed hands."""
        notes = (notes or "").strip() or None

        with self.store.atomic():
            claim = self._get_claim_for_admin(actor, claim_id)
            if claim.status != ClaimStatus.approved:
                raise InvalidTransition()

            now = datetime.now(timezone.utc)
            won = self.store.transition(
                claim_id,
                [ClaimStatus.approved],
                ClaimStatus.resolved,
                resolved_at=now,
                updated_at=now,
                resolution_notes=notes,
            )
            if not won:
                raise InvalidTransition()

            self.store.record(claim_id, "resolved", actor.user_id, actor.role, note=notes)

        logger.info("Claim %s resolved by admin %s", claim_id, actor.user_id)
        return self.store.refresh(claim)

    def admin_delete(self, actor: Actor, claim_id: uuid.UUID) -> None:
        """Hard delete, outside the state graph."""
        with self.store.atomic():
            claim = self._get_claim_for_admin(actor, claim_id)
            previous = claim.status.value

            if not self.store.delete(claim_id):
                raise ClaimNotFound()

            self.store.record(claim_id, "admin_deleted", actor.user_id, actor.role, note=f"status was {previous}")

        logger.warning("Claim %s (%s) deleted by admin %s", claim_id, previous, actor.user_id)

    # Reads

    def get_claim(self, actor: Actor, claim_id: uuid.UUID) -> Claim:
        claim = self.store.get(claim_id)
        if not claim:
            raise self._missing(actor)

        if actor.is_admin or actor.user_id in (claim.claimant_id, claim.item_owner_id):
            return claim

        raise NotAuthorized()

    def claims_for_claimant(self, actor: Actor) -> List[Claim]:
        return self.store.list_for_claimant(actor.user_id)

    def claims_for_owner(self, actor: Actor, item_type: Optional[ItemType] = None) -> List[Claim]:
        return self.store.list_for_item_owner(actor.user_id, item_type)

    def claims_for_item(self, actor: Actor, item: Item) -> List[Claim]:
        if not actor.is_admin and item.user_id != actor.user_id:
            raise NotAuthorized()

        return self.store.list_for_item(item.type, item.id)

    def all_claims(self, actor: Actor, status: Optional[ClaimStatus] = None, limit: int = 50) -> List[Claim]:
        if not actor.is_admin:
            raise NotAuthorized()

        statuses = None
        if status:
            statuses = PENDING_STATUSES if status.is_pending else (status,)

        return self.store.list_all(statuses, limit)

    def events(self, actor: Actor, claim_id: uuid.UUID) -> List[ClaimEvent]:
        # Deleted claims keep their trail, so no existence check here
        if not actor.is_admin:
            raise NotAuthorized()

        return self.store.events_for(claim_id)
