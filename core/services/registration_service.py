"""
Registration and email confirmation.

New accounts start Unverified with a fresh confirmation token. Redeeming the
token clears it for good and moves Unverified accounts to Active; an account
blocked in the meantime stays Blocked.
"""

import logging
import secrets
from urllib.parse import urlencode

from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.exceptions import EmailAlreadyRegisteredError, InvalidConfirmationTokenError
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityEvent, SecurityLogger
from core import account_status
from core.models.account import Account, RegistrationRequest

logger = logging.getLogger(__name__)


class RegistrationService:
    """Creates accounts and redeems confirmation tokens."""

    def __init__(
        self,
        config: AuthConfig,
        account_db: AccountDatabase,
        password_hasher: PasswordHasher,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._account_db = account_db
        self._password_hasher = password_hasher
        self._security_logger = security_logger

    def register(self, data: RegistrationRequest, ip_address: str | None = None) -> Account:
        """
        Create an Unverified account with a pending confirmation token.

        The email unique constraint decides concurrent registrations; the
        loser gets EmailAlreadyRegisteredError.

        Raises:
            EmailAlreadyRegisteredError: Email already registered.
        """
        try:
            account = self._account_db.create_account(
                name=data.name,
                email=data.email,
                password_hash=self._password_hasher.hash(data.password),
                confirmation_token=secrets.token_urlsafe(32),
            )
        except EmailAlreadyRegisteredError:
            self._security_logger.log(
                SecurityEvent.REGISTRATION_CONFLICT,
                email=data.email,
                ip_address=ip_address,
            )
            raise

        self._security_logger.log(
            SecurityEvent.ACCOUNT_REGISTERED,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
        )
        logger.info(f"Account {account.id} registered")
        return account

    def confirmation_link(self, token: str) -> str:
        """Absolute link the user follows to confirm their email."""
        base = self._config.app_base_url.rstrip("/")
        return f"{base}/auth/confirm?{urlencode({'token': token})}"

    def confirm_email(self, token: str | None, ip_address: str | None = None) -> Account:
        """
        Redeem a confirmation token.

        Raises:
            InvalidConfirmationTokenError: Token missing, unknown, or already used.
        """
        change = self._account_db.redeem_confirmation_token(token, account_status.confirm) if token else None

        if change is None:
            self._security_logger.log(
                SecurityEvent.CONFIRMATION_FAILED,
                ip_address=ip_address,
                details={"reason": "token_missing" if not token else "token_not_found"},
            )
            raise InvalidConfirmationTokenError("Invalid or expired confirmation link.")

        account = self._account_db.get_account_by_id(change.account_id)
        if account is None:
            # Deleted between redeem and re-read
            raise InvalidConfirmationTokenError("Invalid or expired confirmation link.")

        self._security_logger.log(
            SecurityEvent.EMAIL_CONFIRMED,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
            details={"previous_status": change.previous.value, "status": change.current.value},
        )
        logger.info(f"Account {account.id} confirmed email ({change.previous.value} -> {change.current.value})")
        return account
