"""FastAPI application assembly from already-constructed dependencies."""

from fastapi import FastAPI

from api.base import success_response
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.roster import create_roster_router
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.gatekeeper import AccountGatekeeper
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.session import SessionManager
from core.notifications import ConfirmationNotifier
from core.services.registration_service import RegistrationService
from core.services.roster_service import RosterService


def create_app(
    config: AuthConfig,
    account_db: AccountDatabase,
    session_manager: SessionManager,
    security_logger: SecurityLogger,
    notifier: ConfirmationNotifier,
    password_hasher: PasswordHasher | None = None,
    lifespan=None,
) -> FastAPI:
    """Wire services, middleware, error handlers and routes into an app."""
    password_hasher = password_hasher or PasswordHasher(rounds=config.bcrypt_rounds)

    auth_service = AuthService(account_db, session_manager, password_hasher, security_logger)
    registration_service = RegistrationService(config, account_db, password_hasher, security_logger)
    roster_service = RosterService(account_db, security_logger)

    app = FastAPI(title=config.app_name, lifespan=lifespan)

    # Last added runs first: request id wraps auth
    app.add_middleware(
        AuthMiddleware,
        session_manager=session_manager,
        gatekeeper=AccountGatekeeper(account_db),
        security_logger=security_logger,
        cookie_name=config.session_cookie_name,
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(
        create_auth_router(auth_service, registration_service, notifier, config),
        prefix="/auth",
    )
    app.include_router(create_roster_router(roster_service), prefix="/users")

    @app.get("/health", tags=["health"])
    def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    return app
