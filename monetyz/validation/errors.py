"""
Validation Errors

Raised before anything is persisted. Every message is safe to show to the
user as-is; the fix is always to re-enter the input.
"""


class ValidationError(Exception):
    """Base exception for rejected user input."""
    pass


class InvalidAmount(ValidationError):
    """Amount is missing, unparsable, non-finite, zero or negative."""
    pass


class InvalidTransferAccounts(ValidationError):
    """Transfer endpoints are missing or identical."""
    pass


class InvalidDate(ValidationError):
    """Date is not a YYYY-MM-DD calendar day."""
    pass


class DuplicateAccount(ValidationError):
    """An account with the same name (case-insensitive) already exists."""
    pass


class CannotRemovePrimary(ValidationError):
    """The primary account cannot be removed."""
    pass


class AccountNotFound(ValidationError):
    """Referenced account does not exist or was not given."""
    pass


class InvalidRule(ValidationError):
    """Category rule has a blank keyword or category."""
    pass


class DuplicateRule(ValidationError):
    """A rule with the same keyword (case-insensitive) already exists."""
    pass
