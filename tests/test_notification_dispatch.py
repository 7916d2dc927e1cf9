from urllib.parse import parse_qs, unquote, urlparse

import pytest

from app.models.claim import ClaimStatus, ContactType
from app.services.contact_disclosure import ContactDisclosureFlow
from app.services.errors import ClaimValidationError, InvalidTransition
from app.services.notification_dispatch import (
    ContactChannel,
    NotificationKind,
    compose_message,
    dispatch,
)


WHATSAPP = ContactChannel(ContactType.whatsapp, "98765 43210")
EMAIL = ContactChannel(ContactType.email, "u2@example.com")


class TestComposeMessage:
    def test_approval_mentions_item_and_next_steps(self, approved_claim, lost_item):
        subject, body = compose_message(NotificationKind.approved, approved_claim, lost_item)

        assert "Blue notebook" in subject
        assert "APPROVED" in body
        assert "Central library" in body
        assert "Lost item" in body
        assert body.startswith("Hello Claimant Two,")

    def test_rejection_carries_reason(self, lifecycle, owner_actor, pending_claim, lost_item):
        claim = lifecycle.reject(owner_actor, pending_claim.id, "Serial number does not match")
        _, body = compose_message(NotificationKind.rejected, claim, lost_item)

        assert "REJECTED" in body
        assert "Reason: Serial number does not match" in body

    def test_works_without_the_item(self, approved_claim):
        _, body = compose_message(NotificationKind.approved, approved_claim, None)

        assert "Location: N/A" in body
        assert "Blue notebook" in body

    def test_contact_shared_includes_owner_contact(self, session, owner_actor, approved_claim):
        claim = ContactDisclosureFlow(session).share_owner_contact(owner_actor, approved_claim.id, ContactType.whatsapp, "9876543210")
        _, body = compose_message(NotificationKind.contact_shared, claim)

        assert "Owner whatsapp: 919876543210" in body


class TestDispatch:
    def test_whatsapp_link_for_approval(self, approved_claim, lost_item):
        link = dispatch(WHATSAPP, NotificationKind.approved, approved_claim, lost_item)

        assert link.kind == NotificationKind.approved
        assert link.channel_type == ContactType.whatsapp
        assert link.url.startswith("https://wa.me/919876543210?text=")
        assert "APPROVED" in unquote(link.url)

    def test_mailto_link_for_approval(self, approved_claim, lost_item):
        link = dispatch(EMAIL, "approved", approved_claim, lost_item)
        parsed = urlparse(link.url)
        query = parse_qs(parsed.query)

        assert parsed.scheme == "mailto"
        assert parsed.path == "u2@example.com"
        assert "Blue notebook" in query["subject"][0]
        assert "APPROVED" in query["body"][0]

    def test_approval_message_still_allowed_after_resolution(self, lifecycle, admin_actor, approved_claim):
        claim = lifecycle.resolve(admin_actor, approved_claim.id)
        assert dispatch(EMAIL, NotificationKind.approved, claim).url.startswith("mailto:")

    @pytest.mark.parametrize("kind", list(NotificationKind))
    def test_pending_claims_have_nothing_to_announce(self, pending_claim, kind):
        with pytest.raises(InvalidTransition):
            dispatch(EMAIL, kind, pending_claim)

    def test_rejection_message_needs_rejected_claim(self, approved_claim):
        with pytest.raises(InvalidTransition):
            dispatch(EMAIL, NotificationKind.rejected, approved_claim)

    def test_contact_shared_needs_a_shared_contact(self, approved_claim):
        with pytest.raises(InvalidTransition):
            dispatch(EMAIL, NotificationKind.contact_shared, approved_claim)

    def test_invalid_channel_value(self, approved_claim):
        with pytest.raises(ClaimValidationError):
            dispatch(ContactChannel(ContactType.whatsapp, "12345"), NotificationKind.approved, approved_claim)

    def test_dispatch_does_not_change_the_claim(self, session, approved_claim):
        dispatch(EMAIL, NotificationKind.approved, approved_claim)

        session.refresh(approved_claim)
        assert approved_claim.status == ClaimStatus.approved
        assert approved_claim.owner_contact_info is None
