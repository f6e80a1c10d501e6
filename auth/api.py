"""HTTP routes for registration, confirmation, login and logout."""

import ipaddress
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Query, Request, Response
from fastapi.responses import RedirectResponse

from auth.config import AuthConfig
from auth.exceptions import (
    AccountBlockedError,
    EmailAlreadyRegisteredError,
    InvalidConfirmationTokenError,
    InvalidCredentialsError,
    SessionExpiredError,
)
from auth.gatekeeper import GateRejection
from auth.service import AuthService
from api.base import success_response, ErrorCodes
from api.errors import error_json
from core.models import LoginRequest, RegistrationRequest
from core.notifications import ConfirmationNotifier
from core.services.registration_service import RegistrationService

LOGIN_ERRORS = {
    GateRejection.ACCOUNT_DELETED.code: GateRejection.ACCOUNT_DELETED.message,
    GateRejection.ACCOUNT_BLOCKED.code: GateRejection.ACCOUNT_BLOCKED.message,
    "invalid_confirmation_link": "Invalid or expired confirmation link.",
}

LOGIN_NOTICES = {
    "email_confirmed": "Email confirmed successfully! You can now login.",
    "registered": "Registration successful! Please check your email to confirm your account.",
    "logged_out": "You have been logged out.",
}

HOME_PATH = "/users"
LOGIN_PATH = "/auth/login"


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def _login_redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(url=f"{LOGIN_PATH}?{urlencode(params)}", status_code=303)


def _flash(error: str | None, notice: str | None) -> dict | None:
    """Resolve flash codes from the query string. Unknown codes show nothing."""
    if error in LOGIN_ERRORS:
        return {"level": "error", "code": error, "text": LOGIN_ERRORS[error]}
    if notice in LOGIN_NOTICES:
        return {"level": "success", "code": notice, "text": LOGIN_NOTICES[notice]}
    return None


def create_auth_router(
    auth_service: AuthService,
    registration_service: RegistrationService,
    notifier: ConfirmationNotifier,
    config: AuthConfig,
) -> APIRouter:
    """Create auth router with injected services."""
    router = APIRouter(tags=["auth"])
    cookie_name = config.session_cookie_name

    def _signed_in(request: Request) -> bool:
        token = request.cookies.get(cookie_name)
        if not token:
            return False
        try:
            auth_service.validate_session(token)
        except SessionExpiredError:
            return False
        return True

    @router.get("/login")
    def login_form(
        request: Request,
        error: str | None = Query(None),
        notice: str | None = Query(None),
    ):
        """Describe the login form. Signed-in callers go straight to the roster."""
        if _signed_in(request):
            return RedirectResponse(url=HOME_PATH, status_code=303)

        return success_response({
            "form": "login",
            "fields": ["email", "password"],
            "flash": _flash(error, notice),
        })

    @router.post("/login")
    def login(request: Request, response: Response, body: LoginRequest):
        """Verify credentials and create a session.

        Sets the session cookie on success.
        """
        try:
            result = auth_service.login(
                email=body.email,
                password=body.password,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except InvalidCredentialsError as e:
            return error_json(401, ErrorCodes.INVALID_CREDENTIALS, str(e))
        except AccountBlockedError as e:
            return error_json(403, ErrorCodes.ACCOUNT_BLOCKED, str(e))

        response.set_cookie(
            key=cookie_name,
            value=result.session.token,
            httponly=True,
            secure=config.session_cookie_secure,
            samesite="lax",
            max_age=int((result.session.expires_at - result.session.created_at).total_seconds()),
        )

        return success_response({
            "account": result.account.model_dump(mode="json"),
            "redirect_to": HOME_PATH,
        })

    @router.get("/register")
    def register_form(request: Request):
        """Describe the registration form."""
        if _signed_in(request):
            return RedirectResponse(url=HOME_PATH, status_code=303)

        return success_response({
            "form": "register",
            "fields": ["name", "email", "password"],
        })

    @router.post("/register", status_code=201)
    def register(request: Request, body: RegistrationRequest, background_tasks: BackgroundTasks):
        """Create an unverified account and send the confirmation link.

        The email goes out after the response; its outcome is only logged.
        """
        try:
            account = registration_service.register(body, ip_address=_get_client_ip(request))
        except EmailAlreadyRegisteredError as e:
            return error_json(409, ErrorCodes.ALREADY_EXISTS, str(e), fields={"email": str(e)})

        background_tasks.add_task(
            notifier.send_confirmation,
            account.email,
            account.name,
            registration_service.confirmation_link(account.confirmation_token),
        )

        return success_response({
            "account": account.model_dump(mode="json"),
            "message": LOGIN_NOTICES["registered"],
        })

    @router.get("/confirm")
    def confirm_email(request: Request, token: str | None = Query(None)):
        """Redeem a confirmation link and return to the login form."""
        try:
            registration_service.confirm_email(token, ip_address=_get_client_ip(request))
        except InvalidConfirmationTokenError:
            return _login_redirect(error="invalid_confirmation_link")
        return _login_redirect(notice="email_confirmed")

    @router.post("/logout")
    def logout(request: Request):
        """Logout - revoke session and clear cookie."""
        session_token = request.cookies.get(cookie_name)

        if session_token:
            auth_service.logout(
                session_token=session_token,
                ip_address=_get_client_ip(request),
            )

        response = _login_redirect(notice="logged_out")
        response.delete_cookie(key=cookie_name)
        return response

    return router
