"""
Account status transitions.

    Unverified --confirm--> Active        (token cleared)
    Blocked    --confirm--> Blocked       (token cleared)
    any        --block----> Blocked
    Blocked    --unblock--> Active        if confirmation already done
                            Unverified    if confirmation still pending

Status is not stacked: the pending confirmation token is the only record of
what an account was before it got blocked, so unblocking rebuilds the status
from it.

Each function returns the status an account moves to, or None when the event
does not apply to the account (it is then left untouched and not counted).
"""

from core.models.account import Account, AccountStatus


def status_after_confirmation(status: AccountStatus) -> AccountStatus:
    """Status once the account's confirmation token has been redeemed."""
    if status == AccountStatus.UNVERIFIED:
        return AccountStatus.ACTIVE
    return status


def status_after_block(status: AccountStatus) -> AccountStatus:
    """Admin block applies to every account, including one already blocked."""
    return AccountStatus.BLOCKED


def status_after_unblock(status: AccountStatus, confirmation_pending: bool) -> AccountStatus | None:
    """Only blocked accounts are eligible for unblock."""
    if status != AccountStatus.BLOCKED:
        return None
    if confirmation_pending:
        return AccountStatus.UNVERIFIED
    return AccountStatus.ACTIVE


def block(account: Account) -> AccountStatus:
    return status_after_block(account.status)


def unblock(account: Account) -> AccountStatus | None:
    return status_after_unblock(account.status, account.confirmation_pending)


def confirm(account: Account) -> AccountStatus:
    return status_after_confirmation(account.status)
