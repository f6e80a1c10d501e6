"""Authentication service - password login and logout."""

import logging
from uuid import UUID

from auth.database import AccountDatabase
from auth.exceptions import AccountBlockedError, InvalidCredentialsError, SessionExpiredError
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.session import SessionManager
from auth.types import AuthenticatedAccount, Session
from core.models.account import AccountStatus, normalize_email
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class AuthService:
    """Turns verified credentials into sessions and tears them down.

    Unverified accounts may log in; confirmation only moves the status label.
    """

    def __init__(
        self,
        account_db: AccountDatabase,
        session_manager: SessionManager,
        password_hasher: PasswordHasher,
        security_logger: SecurityLogger,
    ):
        self._account_db = account_db
        self._session_manager = session_manager
        self._password_hasher = password_hasher
        self._security_logger = security_logger

    def _reject(
        self,
        email: str,
        reason: str,
        ip_address: str | None,
        user_agent: str | None,
        account_id: UUID | None = None,
    ) -> None:
        self._security_logger.log(
            SecurityEvent.LOGIN_FAILED,
            email=email,
            account_id=account_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"reason": reason},
        )

    def login(
        self,
        email: str,
        password: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuthenticatedAccount:
        """Verify credentials and create a session.

        Flow:
        1. Look up account by email (case-insensitive)
        2. Refuse blocked accounts before checking the password
        3. Verify password
        4. Record login time, create session
        5. Log security events

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            AccountBlockedError: Account is blocked.
        """
        email = normalize_email(email)
        account = self._account_db.get_account_by_email(email)

        if account is None:
            self._reject(email, "account_not_found", ip_address, user_agent)
            raise InvalidCredentialsError("Invalid email or password.")

        if account.status == AccountStatus.BLOCKED:
            self._reject(email, "account_blocked", ip_address, user_agent, account_id=account.id)
            raise AccountBlockedError("Your account has been blocked.")

        if not self._password_hasher.verify(password, account.password_hash):
            self._reject(email, "wrong_password", ip_address, user_agent, account_id=account.id)
            raise InvalidCredentialsError("Invalid email or password.")

        self._account_db.record_login(account.id, now_utc())
        session = self._session_manager.create_session(account.id)

        self._security_logger.log(
            SecurityEvent.LOGIN_SUCCEEDED,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._security_logger.log(
            SecurityEvent.SESSION_CREATED,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(f"Account {account.id} logged in")

        # Re-read to return the stored last_login_at
        refreshed = self._account_db.get_account_by_id(account.id) or account
        return AuthenticatedAccount(account=refreshed, session=session)

    def logout(self, session_token: str, ip_address: str | None) -> None:
        """Revoke session (logout). Safe to call with an invalid token."""
        try:
            account_id = self._session_manager.validate_session(session_token).account_id
        except (SessionExpiredError, ValueError):
            account_id = None

        self._session_manager.revoke_session(session_token)

        self._security_logger.log(
            SecurityEvent.SESSION_REVOKED,
            account_id=account_id,
            ip_address=ip_address,
        )

    def validate_session(self, token: str) -> Session:
        """Validate session token.

        Raises:
            SessionExpiredError: If session invalid or expired.
        """
        return self._session_manager.validate_session(token)
