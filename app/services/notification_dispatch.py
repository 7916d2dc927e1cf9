"""
Pre-filled outbound messages for claim outcomes.

Nothing here sends anything. ``dispatch`` returns a wa.me or mailto link that
a person opens themselves, so a built link says nothing about delivery.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from app.models.claim import Claim, ClaimStatus, ContactType
from app.models.item import Item
from app.services.errors import ClaimValidationError, InvalidTransition
from app.utils.contact_codec import build_contact_link, normalize_contact


ADMIN_INFO = {
    "name": os.getenv("ADMIN_CONTACT_NAME", "Lost & Found Admin"),
    "phone": os.getenv("ADMIN_CONTACT_PHONE", ""),
    "email": os.getenv("ADMIN_CONTACT_EMAIL", "admin@lostfound.com"),
}


class NotificationKind(str, Enum):
    approved = "approved"
    rejected = "rejected"
    resolved = "resolved"
    contact_shared = "contact_shared"


# Which claim states each message may be sent from
ALLOWED_STATUSES = {
    NotificationKind.approved: (ClaimStatus.approved, ClaimStatus.resolved),
    NotificationKind.rejected: (ClaimStatus.rejected,),
    NotificationKind.resolved: (ClaimStatus.resolved,),
    NotificationKind.contact_shared: (ClaimStatus.approved,),
}


@dataclass(frozen=True)
class ContactChannel:
    type: ContactType
    value: str


@dataclass(frozen=True)
class DispatchLink:
    url: str
    channel_type: ContactType
    kind: NotificationKind


def _item_details(claim: Claim, item: Optional[Item]) -> str:
    item_type = "Lost item" if claim.item_type == "lost" else "Found item"
    location = item.location if item else "N/A"
    description = (item.description if item else "") or "No description provided"

    return (
        f"Item type: {item_type}\n"
        f"Item name: {claim.item_title or 'N/A'}\n"
        f"Category: {claim.item_category or 'N/A'}\n"
        f"Location: {location}\n"
        f"Description: {description}"
    )


def _admin_footer() -> str:
    lines = [f"Contact {ADMIN_INFO['name']}:"]
    if ADMIN_INFO["phone"]:
        lines.append(f"Phone: {ADMIN_INFO['phone']}")
    lines.append(f"Email: {ADMIN_INFO['email']}")
    return "\n".join(lines)


def compose_message(kind: NotificationKind, claim: Claim, item: Optional[Item] = None) -> Tuple[str, str]:
    """Return (subject, body) for a claim outcome message."""
    kind = NotificationKind(kind)
    greeting = f"Hello {claim.claimant_name},"
    details = _item_details(claim, item)

    if kind == NotificationKind.approved:
        subject = f"Your claim for '{claim.item_title}' has been approved"
        body = (
            f"{greeting}\n\n"
            f"Your claim has been APPROVED.\n\n{details}\n\n"
            "Next steps:\n"
            "1. The item owner will share their contact details with you\n"
            "2. Coordinate with the owner to arrange the handover\n"
            "3. Once you have the item, the claim will be marked resolved"
        )
    elif kind == NotificationKind.rejected:
        subject = f"Your claim for '{claim.item_title}' was not approved"
        body = f"{greeting}\n\nYour claim could not be verified and has been REJECTED.\n\n{details}"
        if claim.rejection_reason:
            body += f"\n\nReason: {claim.rejection_reason}"
        body += "\n\nYou can file a new claim with additional details."
    elif kind == NotificationKind.resolved:
        subject = f"'{claim.item_title}' has been recovered"
        body = f"{greeting}\n\nThe handover is confirmed and your claim is now RESOLVED.\n\n{details}"
        if claim.resolution_notes:
            body += f"\n\nNotes: {claim.resolution_notes}"
    else:
        subject = f"Contact details for '{claim.item_title}'"
        body = (
            f"{greeting}\n\n"
            "The item owner has shared their contact details so you can arrange the handover.\n\n"
            f"{details}\n\n"
            f"Owner {claim.owner_contact_type.value if claim.owner_contact_type else 'contact'}: "
            f"{claim.owner_contact_info}"
        )

    body += f"\n\n{_admin_footer()}"
    return subject, body


def dispatch(
    channel: ContactChannel,
    kind: NotificationKind,
    claim: Claim,
    item: Optional[Item] = None,
) -> DispatchLink:
    kind = NotificationKind(kind)
    status = ClaimStatus(claim.status).canonical()

    if status not in ALLOWED_STATUSES[kind]:
        raise InvalidTransition(f"A '{kind.value}' message can't be sent for a {status.value} claim")

    if kind == NotificationKind.contact_shared and not claim.owner_contact_info:
        raise InvalidTransition("The owner has not shared contact details yet")

    value = normalize_contact(channel.type, channel.value)
    subject, body = compose_message(kind, claim, item)

    url = build_contact_link(channel.type, value, body, subject)
    if not url:
        raise ClaimValidationError("Could not build a contact link")

    return DispatchLink(url=url, channel_type=channel.type, kind=kind)
