"""Per-request account status check.

Every authenticated request re-reads the account from the store; the session
only says which account claims to be acting. A block or delete applied
mid-session therefore takes effect on the very next request.
"""

import logging
from enum import Enum
from uuid import UUID

from auth.database import AccountDatabase
from core.models.account import AccountStatus

logger = logging.getLogger(__name__)


class GateRejection(Enum):
    """Why a session was refused, as (query-string code, user-facing message)."""

    ACCOUNT_DELETED = ("account_deleted", "Your account has been deleted.")
    ACCOUNT_BLOCKED = ("account_blocked", "Your account has been blocked.")

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message


class AccountGatekeeper:
    """Decides whether the account behind a session may keep acting."""

    def __init__(self, account_db: AccountDatabase):
        self._account_db = account_db

    def check(self, account_id: UUID | None) -> GateRejection | None:
        """Return the rejection reason, or None when the request may proceed.

        No claimed identity means nothing to check.
        """
        if account_id is None:
            return None

        account = self._account_db.get_account_by_id(account_id)
        if account is None:
            logger.warning(f"Session for deleted account {account_id} rejected")
            return GateRejection.ACCOUNT_DELETED
        if account.status == AccountStatus.BLOCKED:
            logger.warning(f"Session for blocked account {account_id} rejected")
            return GateRejection.ACCOUNT_BLOCKED
        return None
