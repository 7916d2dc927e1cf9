from typing import Optional


class ClaimError(Exception):
    """Base class for claim workflow failures.

    Each subclass carries the HTTP status and a short machine-readable code so
    the exception handler in app.main can render it without a lookup table.
    """

    status_code = 400
    code = "claim_error"
    default_message = "Claim operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ClaimValidationError(ClaimError):
    code = "validation_error"
    default_message = "Invalid input"


class SelfClaimNotAllowed(ClaimError):
    code = "self_claim_not_allowed"
    default_message = "You cannot claim your own item"


class DuplicateClaim(ClaimError):
    status_code = 409
    code = "duplicate_claim"
    default_message = "You already have an active claim for this item"


class NotAuthorized(ClaimError):
    # Kept generic so non-parties can't probe which claims exist
    status_code = 403
    code = "not_authorized"
    default_message = "Not authorized to perform this action"


class InvalidTransition(ClaimError):
    status_code = 409
    code = "invalid_transition"
    default_message = "This claim was already handled"


class PrematureDisclosure(ClaimError):
    status_code = 409
    code = "premature_disclosure"
    default_message = "Contact details can only be shared on an approved claim"


class ClaimNotFound(ClaimError):
    status_code = 404
    code = "claim_not_found"
    default_message = "Claim not found"


class ItemNotFound(ClaimError):
    status_code = 404
    code = "item_not_found"
    default_message = "Item not found"


class StoreUnavailable(ClaimError):
    status_code = 503
    code = "store_unavailable"
    default_message = "Storage is temporarily unavailable, please retry"
