"""Typed exceptions for account and auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidCredentialsError(AuthError):
    """
    Unknown email or wrong password.

    Both cases raise this same error so responses never reveal which
    email addresses are registered.
    """


class AccountBlockedError(AuthError):
    """Account exists but is blocked. Deliberately distinguishable from bad credentials."""


class InvalidConfirmationTokenError(AuthError):
    """
    Confirmation token is missing, unknown, or already redeemed.

    All cases share one message so tokens cannot be enumerated.
    """


class SessionExpiredError(AuthError):
    """Session is unknown or has expired; the caller must log in again."""


class AccountConflictError(Exception):
    """A write was rejected by a uniqueness constraint in the accounts store."""


class EmailAlreadyRegisteredError(AccountConflictError):
    """Registration hit the unique constraint on accounts.email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("This email is already registered.")
