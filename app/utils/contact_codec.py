import re
from typing import Optional
from urllib.parse import quote, urlencode

from app.models.claim import ContactType
from app.services.errors import ClaimValidationError


WHATSAPP_BASE_URL = "https://wa.me"
COUNTRY_CODE = "91"

_NON_DIGITS = re.compile(r"\D")
_LOCAL_NUMBER = re.compile(r"^[6-9]\d{9}$")

# Deliberately loose: one @, no whitespace, a dot in the domain
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_phone(raw) -> Optional[str]:
    """
    Normalize an Indian mobile number to ``91XXXXXXXXXX``.

    Accepts bare 10-digit numbers and the usual prefixes (``+91``, ``91``,
    ``0091``, ``00``, a single trunk ``0``). Returns None for anything that
    doesn't reduce to 10 digits starting with 6-9.
    """
    if raw is None:
        return None

    digits = _NON_DIGITS.sub("", str(raw).strip())

    if digits.startswith("0091"):
        digits = digits[4:]
    elif digits.startswith("91"):
        digits = digits[2:]
    elif digits.startswith("00"):
        digits = digits[2:]
        if digits.startswith("91"):
            digits = digits[2:]

    if digits.startswith("0"):
        digits = digits[1:]

    if not _LOCAL_NUMBER.match(digits):
        return None

    return f"{COUNTRY_CODE}{digits}"


def validate_email(raw) -> bool:
    if not raw:
        return False
    return bool(_EMAIL.match(str(raw).strip()))


def normalize_contact(contact_type: ContactType, raw) -> str:
    """Validate a contact value for its channel, raising on failure."""
    if contact_type == ContactType.whatsapp:
        phone = normalize_phone(raw)
        if not phone:
            raise ClaimValidationError("Enter a valid 10-digit mobile number")
        return phone

    if contact_type == ContactType.email:
        if not validate_email(raw):
            raise ClaimValidationError("Enter a valid email address")
        return str(raw).strip().lower()

    raise ClaimValidationError("Unsupported contact type")


def build_contact_link(
    contact_type: ContactType,
    value: Optional[str],
    message: str = "",
    subject: str = "",
) -> Optional[str]:
    if not value:
        return None

    if contact_type == ContactType.whatsapp:
        number = normalize_phone(value)
        if not number:
            return None

        url = f"{WHATSAPP_BASE_URL}/{number}"
        if message and message.strip():
            url += f"?text={quote(message, safe='')}"
        return url

    if contact_type == ContactType.email:
        params = {}
        if subject:
            params["subject"] = subject
        if message:
            params["body"] = message

        url = f"mailto:{quote(value, safe='@')}"
        if params:
            url += "?" + urlencode(params, quote_via=quote)
        return url

    return None
