"""Accounts store: every read and write of the accounts table goes through here.

Email uniqueness is enforced by the accounts_email_key constraint, never by a
read-before-write check. Status transitions lock the affected rows and apply
the caller's transition function inside one transaction.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable
from uuid import UUID

import psycopg2
from psycopg2 import errorcodes

from auth.exceptions import EmailAlreadyRegisteredError
from clients.postgres_client import PostgresClient
from core.models.account import (
    Account,
    AccountStatus,
    StatusChange,
    TransitionResult,
    normalize_email,
)
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

EMAIL_UNIQUE_CONSTRAINT = "accounts_email_key"

_ACCOUNT_COLUMNS = """id, name, email, password_hash, status,
                      last_login_at, created_at, confirmation_token"""

# Whitelisted ORDER BY expressions; user input never reaches the SQL text
_SORT_EXPRESSIONS = {
    "name": "name",
    "email": "email",
    "status": "CASE status WHEN 'unverified' THEN 0 WHEN 'active' THEN 1 ELSE 2 END",
    "last_login_at": "last_login_at",
}

StatusTransition = Callable[[Account], AccountStatus | None]


def _is_email_conflict(error: psycopg2.IntegrityError) -> bool:
    """Match the store's unique-violation signal for the email constraint."""
    if error.pgcode != errorcodes.UNIQUE_VIOLATION:
        return False
    diag = getattr(error, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    return constraint is None or constraint == EMAIL_UNIQUE_CONSTRAINT


class AccountDatabase:
    """Database operations for accounts."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_account_by_id(self, account_id: UUID) -> Account | None:
        """Point-in-time read by id. Never cached."""
        row = self._db.execute_single(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s",
            (account_id,),
        )
        return Account.model_validate(row) if row else None

    def get_account_by_email(self, email: str) -> Account | None:
        """Find account by email (case-insensitive)."""
        row = self._db.execute_single(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s",
            (normalize_email(email),),
        )
        return Account.model_validate(row) if row else None

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        confirmation_token: str,
    ) -> Account:
        """Insert a new unverified account.

        Raises:
            EmailAlreadyRegisteredError: If the email unique constraint rejects the row.
            psycopg2.Error: Any other store fault.
        """
        email = normalize_email(email)
        try:
            rows = self._db.execute_returning(
                f"""INSERT INTO accounts (name, email, password_hash, status, created_at, confirmation_token)
                   VALUES (%s, %s, %s, %s, %s, %s)
                   RETURNING {_ACCOUNT_COLUMNS}""",
                (name, email, password_hash, AccountStatus.UNVERIFIED.value, now_utc(), confirmation_token),
            )
        except psycopg2.IntegrityError as e:
            if _is_email_conflict(e):
                logger.info(f"Insert rejected by {EMAIL_UNIQUE_CONSTRAINT}")
                raise EmailAlreadyRegisteredError(email) from e
            raise
        return Account.model_validate(rows[0])

    def record_login(self, account_id: UUID, logged_in_at: datetime) -> None:
        """Advance last_login_at; an earlier timestamp never overwrites a later one."""
        self._db.execute_returning(
            """UPDATE accounts
               SET last_login_at = GREATEST(COALESCE(last_login_at, %s), %s)
               WHERE id = %s
               RETURNING id""",
            (logged_in_at, logged_in_at, account_id),
        )

    def redeem_confirmation_token(
        self,
        token: str,
        transition: Callable[[Account], AccountStatus],
    ) -> StatusChange | None:
        """Clear a pending confirmation token and apply the confirmation transition.

        Returns None if no account holds the token.
        """
        with self._db.transaction() as cur:
            cur.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE confirmation_token = %s FOR UPDATE",
                (token,),
            )
            row = cur.fetchone()
            if row is None:
                return None
            account = Account.model_validate(dict(row))
            new_status = transition(account)
            cur.execute(
                """UPDATE accounts
                   SET status = %s, confirmation_token = NULL
                   WHERE id = %s""",
                (new_status.value, account.id),
            )
        return StatusChange(account_id=account.id, previous=account.status, current=new_status)

    def transition_accounts(self, account_ids: Iterable[UUID], transition: StatusTransition) -> TransitionResult:
        """Apply a status transition to each selected account that still exists.

        Rows are locked for the duration of the transaction. Accounts for which
        the transition returns None or the current status are left untouched.
        """
        ids = list(account_ids)
        if not ids:
            return TransitionResult(matched=0)

        changes: list[StatusChange] = []
        with self._db.transaction() as cur:
            cur.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = ANY(%s::uuid[]) ORDER BY id FOR UPDATE",
                (ids,),
            )
            accounts = [Account.model_validate(dict(row)) for row in cur.fetchall()]
            for account in accounts:
                new_status = transition(account)
                if new_status is None or new_status == account.status:
                    continue
                cur.execute(
                    "UPDATE accounts SET status = %s WHERE id = %s",
                    (new_status.value, account.id),
                )
                changes.append(
                    StatusChange(account_id=account.id, previous=account.status, current=new_status)
                )
        return TransitionResult(matched=len(accounts), changes=changes)

    def delete_accounts(self, account_ids: Iterable[UUID]) -> list[UUID]:
        """Permanently delete the selected accounts. Returns ids actually removed."""
        ids = list(account_ids)
        if not ids:
            return []
        rows = self._db.execute_returning(
            "DELETE FROM accounts WHERE id = ANY(%s::uuid[]) RETURNING id",
            (ids,),
        )
        return [row["id"] for row in rows]

    def delete_accounts_with_status(self, status: AccountStatus) -> list[UUID]:
        """Permanently delete every account currently in the given status."""
        rows = self._db.execute_returning(
            "DELETE FROM accounts WHERE status = %s RETURNING id",
            (status.value,),
        )
        return [row["id"] for row in rows]

    def list_accounts(self, sort_field: str, descending: bool) -> list[Account]:
        """All accounts ordered by a whitelisted field.

        Accounts that never logged in sort last when descending and first when
        ascending; created_at breaks ties.

        Raises:
            ValueError: If sort_field is not a known sort key.
        """
        expression = _SORT_EXPRESSIONS.get(sort_field)
        if expression is None:
            raise ValueError(f"Unknown sort field '{sort_field}'")
        direction = "DESC NULLS LAST" if descending else "ASC NULLS FIRST"
        rows = self._db.execute(
            f"""SELECT {_ACCOUNT_COLUMNS}
                FROM accounts
                ORDER BY {expression} {direction}, created_at DESC"""
        )
        return [Account.model_validate(row) for row in rows]
