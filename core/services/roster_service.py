"""
Roster service for the admin user list.

Lists accounts in a requested order and applies bulk block, unblock and
delete actions. Any authenticated account may act on any account, itself
included. Every mutation is written to the security log with the acting
account id from the request context.
"""

import logging
from typing import Iterable
from uuid import UUID

from auth.database import AccountDatabase
from auth.security_logger import SecurityEvent, SecurityLogger
from core import account_status
from core.models import (
    Account,
    AccountStatus,
    ActionOutcome,
    RosterActionResult,
    SortField,
    SortOrder,
)
from utils.account_context import get_current_account_id

logger = logging.getLogger(__name__)

_SORT_ALIASES = {
    "name": SortField.NAME,
    "email": SortField.EMAIL,
    "status": SortField.STATUS,
    "last_login_at": SortField.LAST_LOGIN_AT,
    "lastlogintime": SortField.LAST_LOGIN_AT,
    "lastseen": SortField.LAST_LOGIN_AT,
}

DEFAULT_SORT = (SortField.LAST_LOGIN_AT, SortOrder.DESC)


def resolve_sort(sort_by: str | None, sort_order: str | None) -> tuple[SortField, SortOrder]:
    """Map raw query values to a sort.

    An omitted or blank value takes its own default (last login, descending);
    a supplied value that is not recognised sends the whole sort to the default.
    """
    by = (sort_by or "").strip().lower() or DEFAULT_SORT[0].value
    order = (sort_order or "").strip().lower() or DEFAULT_SORT[1].value
    field = _SORT_ALIASES.get(by)
    if field is None or order not in {o.value for o in SortOrder}:
        return DEFAULT_SORT
    return field, SortOrder(order)


def _selection(account_ids: Iterable[UUID] | None) -> list[UUID]:
    """Deduplicate the submitted ids, keeping order."""
    ids = list(dict.fromkeys(account_ids or []))
    if not ids:
        raise ValueError("No users selected.")
    return ids


class RosterService:
    """Service for roster listing and bulk actions."""

    def __init__(self, account_db: AccountDatabase, security_logger: SecurityLogger):
        self.account_db = account_db
        self.security_logger = security_logger

    def list_accounts(self, sort_by: str | None = None, sort_order: str | None = None) -> list[Account]:
        """
        All accounts in the requested order.

        Args:
            sort_by: name, email, status, last_login_at (aliases lastlogintime, lastseen)
            sort_order: asc or desc

        Returns:
            Accounts ordered by the resolved sort, last login descending by default
        """
        field, order = resolve_sort(sort_by, sort_order)
        return self.account_db.list_accounts(field.value, descending=order == SortOrder.DESC)

    def _audit(self, event: SecurityEvent, account_ids: list[UUID], **details) -> None:
        self.security_logger.log(
            event,
            account_id=get_current_account_id(),
            details={"account_ids": [str(i) for i in account_ids], **details},
        )

    def block(self, account_ids: Iterable[UUID] | None) -> RosterActionResult:
        """Block every selected account, including already-blocked ones and the caller."""
        ids = _selection(account_ids)
        result = self.account_db.transition_accounts(ids, account_status.block)
        changed = [c.account_id for c in result.changes]

        self._audit(SecurityEvent.ACCOUNTS_BLOCKED, changed, selected=len(ids), matched=result.matched)
        logger.info(f"Blocked {result.changed_count} of {len(ids)} selected account(s)")

        return RosterActionResult(
            action="block",
            selected=len(ids),
            matched=result.matched,
            affected=result.changed_count,
            outcome=ActionOutcome.CHANGED if changed else ActionOutcome.NOTHING_TO_DO,
            message=f"Blocked {result.changed_count} of {len(ids)} selected user(s).",
            account_ids=changed,
        )

    def unblock(self, account_ids: Iterable[UUID] | None) -> RosterActionResult:
        """
        Unblock the selected Blocked accounts.

        Each goes back to Active, or to Unverified if its email was never
        confirmed. Accounts that are not Blocked are skipped and not counted.
        """
        ids = _selection(account_ids)
        result = self.account_db.transition_accounts(ids, account_status.unblock)
        changed = [c.account_id for c in result.changes]

        self._audit(SecurityEvent.ACCOUNTS_UNBLOCKED, changed, selected=len(ids), matched=result.matched)
        logger.info(f"Unblocked {result.changed_count} of {len(ids)} selected account(s)")

        if not changed:
            return RosterActionResult(
                action="unblock",
                selected=len(ids),
                matched=result.matched,
                affected=0,
                outcome=ActionOutcome.NOTHING_TO_DO,
                message="No blocked users were selected to unblock.",
            )

        return RosterActionResult(
            action="unblock",
            selected=len(ids),
            matched=result.matched,
            affected=result.changed_count,
            outcome=ActionOutcome.CHANGED,
            message=f"Unblocked {result.changed_count} of {len(ids)} selected user(s).",
            account_ids=changed,
        )

    def delete(self, account_ids: Iterable[UUID] | None) -> RosterActionResult:
        """Permanently delete the selected accounts, the caller included."""
        ids = _selection(account_ids)
        removed = self.account_db.delete_accounts(ids)

        self._audit(SecurityEvent.ACCOUNTS_DELETED, removed, selected=len(ids))
        logger.info(f"Deleted {len(removed)} of {len(ids)} selected account(s)")

        return RosterActionResult(
            action="delete",
            selected=len(ids),
            matched=len(removed),
            affected=len(removed),
            outcome=ActionOutcome.CHANGED if removed else ActionOutcome.NOTHING_TO_DO,
            message=f"Deleted {len(removed)} of {len(ids)} selected user(s).",
            account_ids=removed,
        )

    def purge_unverified(self) -> RosterActionResult:
        """Permanently delete every Unverified account, ignoring any selection."""
        removed = self.account_db.delete_accounts_with_status(AccountStatus.UNVERIFIED)

        if not removed:
            return RosterActionResult(
                action="purge_unverified",
                selected=0,
                matched=0,
                affected=0,
                outcome=ActionOutcome.NOTHING_TO_DO,
                message="No unverified users found.",
            )

        self._audit(SecurityEvent.UNVERIFIED_PURGED, removed)
        logger.info(f"Purged {len(removed)} unverified account(s)")

        return RosterActionResult(
            action="purge_unverified",
            selected=0,
            matched=len(removed),
            affected=len(removed),
            outcome=ActionOutcome.CHANGED,
            message=f"Deleted {len(removed)} unverified user(s).",
            account_ids=removed,
        )
