import uuid
from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.db import get_session
from app.models.claim import Claim, ContactType
from app.models.item import ItemType
from app.schemas.claim_schemas import (
    ClaimCreateRequest,
    ClaimRejectRequest,
    ClaimResolveRequest,
    ContactShareRequest,
    NotifyRequest,
    NotifyResponse,
)
from app.services.actor import Actor
from app.services.claim_lifecycle import ClaimLifecycle, owns_proof_image
from app.services.claim_store import ItemStore
from app.services.contact_disclosure import ContactDisclosureFlow, present
from app.services.errors import ClaimValidationError, ItemNotFound
from app.services.notification_dispatch import ContactChannel, dispatch
from app.utils.auth_helper import get_actor
from app.utils.s3_service import generate_signed_url


router = APIRouter()


def claim_response(claim: Claim):
    # Keys outside the claimant's upload folder are never signed
    key = claim.proof_image if owns_proof_image(claim.claimant_id, claim.proof_image) else None
    return present(claim, generate_signed_url(key))


@router.post("/")
def submit_claim(
    payload: ClaimCreateRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    item = ItemStore(session).get_item(payload.item_type, payload.item_id)
    if not item:
        raise ItemNotFound()

    claim = ClaimLifecycle(session).submit(
        actor,
        item,
        payload.claim_message,
        proof_image=payload.proof_image,
    )

    return {
        "ok": True,
        "claim_id": str(claim.id),
    }


@router.get("/mine")
def get_my_claims(
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Claims the current user has submitted.
    """
    claims = ClaimLifecycle(session).claims_for_claimant(actor)
    return {"claims": [claim_response(c) for c in claims]}


@router.get("/owned")
def get_claims_on_my_items(
    item_type: Optional[ItemType] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Claims filed against the current user's items.
    """
    claims = ClaimLifecycle(session).claims_for_owner(actor, item_type)
    return {"claims": [claim_response(c) for c in claims]}


@router.get("/item/{item_type}/{item_id}")
def get_claims_for_item(
    item_type: ItemType,
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Review claims on one item - accessible by the item owner and admins.
    """
    item = ItemStore(session).get_item(item_type, item_id)
    if not item:
        raise ItemNotFound()

    claims = ClaimLifecycle(session).claims_for_item(actor, item)
    return {"claims": [claim_response(c) for c in claims]}


@router.get("/{claim_id}")
def get_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    claim = ClaimLifecycle(session).get_claim(actor, claim_id)
    return {"claim": claim_response(claim)}


@router.post("/{claim_id}/approve")
def approve_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    claim = ClaimLifecycle(session).approve(actor, claim_id)
    return {"ok": True, "claim": claim_response(claim)}


@router.post("/{claim_id}/reject")
def reject_claim(
    claim_id: uuid.UUID,
    payload: Optional[ClaimRejectRequest] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    reason = payload.reason if payload else None
    claim = ClaimLifecycle(session).reject(actor, claim_id, reason)
    return {"ok": True, "claim": claim_response(claim)}


@router.post("/{claim_id}/resolve")
def resolve_claim(
    claim_id: uuid.UUID,
    payload: Optional[ClaimResolveRequest] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    notes = payload.notes if payload else None
    claim = ClaimLifecycle(session).resolve(actor, claim_id, notes)
    return {"ok": True, "claim": claim_response(claim)}


@router.delete("/{claim_id}")
def delete_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    ClaimLifecycle(session).admin_delete(actor, claim_id)
    return {"ok": True}


@router.post("/{claim_id}/contact")
def share_contact(
    claim_id: uuid.UUID,
    payload: ContactShareRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    claim = ContactDisclosureFlow(session).share_owner_contact(
        actor,
        claim_id,
        payload.contact_type,
        payload.contact_value,
    )
    return {"ok": True, "claim": claim_response(claim)}


@router.post("/{claim_id}/notify", response_model=NotifyResponse)
def build_notification_link(
    claim_id: uuid.UUID,
    payload: NotifyRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Pre-filled message to the claimant. The caller opens the link; nothing is sent from here.
    """
    lifecycle = ClaimLifecycle(session)
    claim = lifecycle.get_claim_for_owner(actor, claim_id)

    contact = payload.contact
    if not contact and payload.channel_type == ContactType.email:
        contact = claim.claimant_email

    if not contact:
        raise ClaimValidationError("A phone number is required for WhatsApp messages")

    item = lifecycle.items.get_item(claim.item_type, claim.item_id)
    link = dispatch(ContactChannel(payload.channel_type, contact), payload.kind, claim, item)

    return NotifyResponse(url=link.url, channel_type=link.channel_type, kind=link.kind)
