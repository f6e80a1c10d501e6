"""Security middleware for FastAPI - session validation, status gate and account context."""

from urllib.parse import urlencode
from uuid import UUID

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse

from auth.gatekeeper import AccountGatekeeper, GateRejection
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.session import SessionManager
from auth.exceptions import SessionExpiredError
from api.base import ErrorCodes
from api.errors import error_json
from utils.account_context import set_current_account_id, clear_current_account_id


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the session and gates it on account status.

    For protected routes:
    1. Extracts session token from the session cookie
    2. Validates session via SessionManager (401 if missing or expired)
    3. Re-checks the account in the store via AccountGatekeeper; a deleted or
       blocked account has its session revoked, its cookie cleared and is
       redirected to the login form with the reason
    4. Sets account_id in request.state and the account context
    5. Clears context after request completes

    Public paths (login, registration, confirmation) bypass both steps so a
    rejected caller can never be redirected into a loop.
    """

    PUBLIC_PATHS = [
        "/auth/login",
        "/auth/register",
        "/auth/confirm",
        "/auth/logout",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(
        self,
        app,
        session_manager: SessionManager,
        gatekeeper: AccountGatekeeper,
        security_logger: SecurityLogger,
        cookie_name: str = "session_token",
        login_path: str = "/auth/login",
    ):
        super().__init__(app)
        self._session_manager = session_manager
        self._gatekeeper = gatekeeper
        self._security_logger = security_logger
        self._cookie_name = cookie_name
        self._login_path = login_path

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path + "/"):
                return True
        return False

    def _unauthenticated(self, code: str, message: str) -> JSONResponse:
        response = error_json(401, code, message)
        response.delete_cookie(key=self._cookie_name)
        return response

    async def _terminate(
        self,
        request: Request,
        session_token: str,
        account_id: UUID,
        rejection: GateRejection,
    ) -> RedirectResponse:
        """Forced logout: revoke the session and send the caller to the login form."""
        await run_in_threadpool(self._session_manager.revoke_session, session_token)
        await run_in_threadpool(
            self._security_logger.log,
            SecurityEvent.SESSION_TERMINATED,
            account_id=account_id,
            ip_address=request.client.host if request.client else None,
            details={"reason": rejection.code, "path": request.url.path},
        )
        response = RedirectResponse(
            url=f"{self._login_path}?{urlencode({'error': rejection.code})}",
            status_code=303,
        )
        response.delete_cookie(key=self._cookie_name)
        return response

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        path = request.url.path

        # Skip auth for public paths
        if self._is_public_path(path):
            return await call_next(request)

        session_token = request.cookies.get(self._cookie_name)

        if not session_token:
            return self._unauthenticated(ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            session = await run_in_threadpool(self._session_manager.validate_session, session_token)
        except SessionExpiredError:
            return self._unauthenticated(ErrorCodes.SESSION_EXPIRED, "Session has expired")

        rejection = await run_in_threadpool(self._gatekeeper.check, session.account_id)
        if rejection is not None:
            return await self._terminate(request, session_token, session.account_id, rejection)

        set_current_account_id(session.account_id)
        request.state.account_id = session.account_id
        request.state.session = session

        try:
            response = await call_next(request)
            return response
        finally:
            # Always clear context
            clear_current_account_id()
