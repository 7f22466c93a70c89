class ShortCodeNotFoundError(Exception):
    """Raised when a short code does not exist or is no longer active."""


class ShortCodeConflictError(Exception):
    """Raised when a custom or generated short code is already taken."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code already exists: {short_code}")
        self.short_code = short_code


class ValidationError(Exception):
    """Raised for malformed create requests; carries field-level errors."""

    def __init__(self, errors: list[dict[str, str]]):
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))
        self.errors = errors


class SpamRejectedError(Exception):
    """Raised when the spam classifier rejects a create request."""

    def __init__(self, reason):
        super().__init__(f"Request rejected: {reason.value}")
        self.reason = reason


class IpBlockedError(Exception):
    """Raised when a blocked IP tries to create a link."""


class NotLinkOwnerError(Exception):
    """Raised when a client tries to change a link it did not create."""


class StoreUnavailableError(Exception):
    """Raised when a persistence collaborator fails."""
