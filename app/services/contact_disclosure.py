import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session

from app.models.claim import Claim, ClaimStatus, ContactType
from app.schemas.claim_schemas import ClaimRead
from app.services.actor import Actor
from app.services.claim_store import ClaimStore
from app.services.errors import ClaimNotFound, ClaimValidationError, NotAuthorized, PrematureDisclosure
from app.utils.contact_codec import normalize_contact


logger = logging.getLogger(__name__)


class ContactDisclosureFlow:
    """
    Owner -> claimant contact sharing.

    The claimant's name and email are part of the claim from the start, so
    only the owner's side needs a disclosure step. It is allowed while the
    claim is approved, and the shared details are only ever shown while the
    claim remains approved (see ``present``).
    """

    def __init__(self, session: Session):
        self.store = ClaimStore(session)

    def share_owner_contact(
        self,
        actor: Actor,
        claim_id: uuid.UUID,
        contact_type,
        raw_value: str,
    ) -> Claim:
        with self.store.atomic():
            claim = self.store.get(claim_id)
            if not claim:
                raise ClaimNotFound() if actor.is_admin else NotAuthorized()

            if claim.item_owner_id != actor.user_id:
                raise NotAuthorized()

            if claim.status != ClaimStatus.approved:
                raise PrematureDisclosure()

            try:
                contact_type = ContactType(contact_type)
            except ValueError:
                raise ClaimValidationError("Unsupported contact type")

            value = normalize_contact(contact_type, raw_value)

            now = datetime.now(timezone.utc)
            written = self.store.set_fields(
                claim_id,
                ClaimStatus.approved,
                owner_contact_info=value,
                owner_contact_type=contact_type,
                contact_shared_at=now,
                updated_at=now,
            )
            if not written:
                # Resolved or deleted between the read and the write
                raise PrematureDisclosure()

            self.store.record(claim_id, "contact_shared", actor.user_id, actor.role, note=contact_type.value)

        logger.info("Owner %s shared %s contact on claim %s", actor.user_id, contact_type.value, claim_id)
        return self.store.refresh(claim)


def present(claim: Claim, proof_image_url: Optional[str] = None) -> ClaimRead:
    """Outward view of a claim with disclosure fields gated on approval."""
    status = ClaimStatus(claim.status)
    disclosed = status == ClaimStatus.approved

    return ClaimRead(
        id=claim.id,
        item_id=claim.item_id,
        item_type=claim.item_type,
        item_owner_id=claim.item_owner_id,
        item_title=claim.item_title,
        item_category=claim.item_category,
        claimant_id=claim.claimant_id,
        claimant_name=claim.claimant_name,
        claimant_email=claim.claimant_email,
        claim_message=claim.claim_message,
        proof_image_url=proof_image_url,
        status=status.canonical(),
        rejection_reason=claim.rejection_reason,
        resolution_notes=claim.resolution_notes,
        created_at=claim.created_at,
        updated_at=claim.updated_at,
        approved_at=claim.approved_at,
        rejected_at=claim.rejected_at,
        resolved_at=claim.resolved_at,
        owner_contact_info=claim.owner_contact_info if disclosed else None,
        owner_contact_type=claim.owner_contact_type if disclosed else None,
        contact_shared_at=claim.contact_shared_at if disclosed else None,
    )
