"""Carry the acting account's identity through a request using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar
from uuid import UUID

_current_account_id: ContextVar[UUID | None] = ContextVar("current_account_id", default=None)


def get_current_account_id() -> UUID | None:
    """
    Account ID of the session making the current request.

    None outside an authenticated request (public routes, background tasks).
    Roster operations record it as the actor of each change.
    """
    return _current_account_id.get()


def set_current_account_id(account_id: UUID) -> None:
    """Set by AuthMiddleware once the gatekeeper has accepted the session."""
    _current_account_id.set(account_id)


def clear_current_account_id() -> None:
    """
    Clear the acting account.

    Must be called in a finally block so identities never leak between requests.
    """
    _current_account_id.set(None)


@contextmanager
def account_context(account_id: UUID):
    """
    Temporarily act as the given account.

    Example:
        with account_context(admin_id):
            roster_service.block([other_id])
    """
    previous = _current_account_id.get()
    set_current_account_id(account_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_account_id()
        else:
            set_current_account_id(previous)
