"""Authentication, sessions and the per-request account gate.

The HTTP router lives in auth.api and is imported from there directly.
"""

from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    AccountBlockedError,
    InvalidConfirmationTokenError,
    SessionExpiredError,
    AccountConflictError,
    EmailAlreadyRegisteredError,
)
from auth.types import Session, AuthenticatedAccount
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.session import SessionManager
from auth.service import AuthService
from auth.gatekeeper import AccountGatekeeper, GateRejection
from auth.security_middleware import AuthMiddleware
