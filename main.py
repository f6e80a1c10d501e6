"""Service entry point.

    uvicorn main:create_app --factory

Secrets come from Vault (VAULT_ADDR, VAULT_ROLE_ID, VAULT_SECRET_ID);
APP_BASE_URL sets the host used in confirmation links.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.app import create_app as build_app
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.security_logger import SecurityLogger
from auth.session import SessionManager
from clients.email_client import EmailGatewayClient
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_database_url, get_email_config, get_valkey_url
from core.notifications import ConfirmationNotifier

logger = logging.getLogger(__name__)


def _email_client() -> EmailGatewayClient | None:
    """Gateway client, or None when Vault has no email secrets."""
    try:
        return EmailGatewayClient(**get_email_config())
    except (PermissionError, KeyError) as e:
        logger.warning(f"Email gateway disabled, confirmation links will only be logged: {e}")
        return None


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = AuthConfig(
        app_base_url=os.getenv("APP_BASE_URL", AuthConfig.model_fields["app_base_url"].default),
        session_cookie_secure=os.getenv("SESSION_COOKIE_SECURE", "true").lower() != "false",
    )

    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            valkey.close()
            postgres.close()

    return build_app(
        config=config,
        account_db=AccountDatabase(postgres),
        session_manager=SessionManager(valkey, config),
        security_logger=SecurityLogger(postgres),
        notifier=ConfirmationNotifier(_email_client(), app_name=config.app_name),
        lifespan=lifespan,
    )
