import pytest
from urllib.parse import parse_qs, unquote, urlparse

from app.models.claim import ContactType
from app.services.errors import ClaimValidationError
from app.utils.contact_codec import (
    build_contact_link,
    normalize_contact,
    normalize_phone,
    validate_email,
)


class TestNormalizePhone:
    @pytest.mark.parametrize("raw", [
        "9876543210",
        "919876543210",
        "+91 98765 43210",
        "0091 9876543210",
        "09876543210",
        "(+91) 98765-43210",
        "00 91 98765 43210",
    ])
    def test_accepted_shapes_reduce_to_canonical(self, raw):
        assert normalize_phone(raw) == "919876543210"

    def test_prefix_091_is_rejected(self):
        # Trunk zero is stripped once, leaving 12 digits
        assert normalize_phone("0919876543210") is None

    @pytest.mark.parametrize("raw", [
        None,
        "",
        "12345",
        "5876543210",  # must start with 6-9
        "98765432101",
        "not a number",
    ])
    def test_invalid_returns_none(self, raw):
        assert normalize_phone(raw) is None

    def test_canonical_output_is_stable(self):
        canonical = normalize_phone("+91-98765-43210")
        assert normalize_phone(canonical) == canonical

    def test_accepts_integers(self):
        assert normalize_phone(9876543210) == "919876543210"


class TestValidateEmail:
    @pytest.mark.parametrize("raw", ["owner@example.com", "a.b+tag@campus.ac.in", "  padded@example.org "])
    def test_valid(self, raw):
        assert validate_email(raw)

    @pytest.mark.parametrize("raw", ["", None, "plainaddress", "two@@example.com", "a@b", "spaced out@example.com", "x@y@z.com"])
    def test_invalid(self, raw):
        assert not validate_email(raw)


class TestNormalizeContact:
    def test_whatsapp_is_normalized(self):
        assert normalize_contact(ContactType.whatsapp, "98765 43210") == "919876543210"

    def test_email_is_trimmed_and_lowercased(self):
        assert normalize_contact(ContactType.email, " Owner@Example.com ") == "owner@example.com"

    def test_bad_phone_raises(self):
        with pytest.raises(ClaimValidationError):
            normalize_contact(ContactType.whatsapp, "12345")

    def test_bad_email_raises(self):
        with pytest.raises(ClaimValidationError):
            normalize_contact(ContactType.email, "nobody")


class TestBuildContactLink:
    def test_whatsapp_link_carries_number_and_encoded_text(self):
        url = build_contact_link(ContactType.whatsapp, "919876543210", "Hi there & thanks")

        assert url.startswith("https://wa.me/919876543210?text=")
        assert "&" not in url.split("?text=")[1]
        assert unquote(url.split("?text=")[1]) == "Hi there & thanks"

    def test_whatsapp_link_without_message(self):
        assert build_contact_link(ContactType.whatsapp, "919876543210") == "https://wa.me/919876543210"

    def test_whatsapp_link_with_blank_message_has_no_query(self):
        assert build_contact_link(ContactType.whatsapp, "919876543210", "   ") == "https://wa.me/919876543210"

    @pytest.mark.parametrize("raw", ["9876543210", "+91 98765 43210", "0091 9876543210", "09876543210"])
    def test_canonical_numbers_always_produce_a_link(self, raw):
        canonical = normalize_phone(raw)
        url = build_contact_link(ContactType.whatsapp, canonical, "hello")

        assert url is not None
        assert canonical in url

    def test_mailto_link(self):
        url = build_contact_link(ContactType.email, "claimant@example.com", "Line one\nLine two", "Claim approved")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.scheme == "mailto"
        assert parsed.path == "claimant@example.com"
        assert query["subject"] == ["Claim approved"]
        assert query["body"] == ["Line one\nLine two"]
        assert "+" not in parsed.query

    def test_mailto_without_params(self):
        assert build_contact_link(ContactType.email, "claimant@example.com") == "mailto:claimant@example.com"

    def test_missing_value_returns_none(self):
        assert build_contact_link(ContactType.whatsapp, None, "hi") is None
        assert build_contact_link(ContactType.email, "", "hi") is None

    def test_invalid_phone_returns_none(self):
        assert build_contact_link(ContactType.whatsapp, "12345", "hi") is None
