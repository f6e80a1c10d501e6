"""
Vault-sourced secrets for the account service.

AppRole login against a KV v2 engine. Every read is confined to the
'accounts/' mount prefix, and each secret is fetched at most once per process.
Missing VAULT_* settings fail at construction time.
"""

import os
import logging
from typing import Dict

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "accounts"

_vault_client_instance: "VaultClient | None" = None
# Full KV payloads keyed by scoped path
_secret_cache: Dict[str, Dict[str, str]] = {}


class VaultError(Exception):
    """Vault login failed. The service cannot start without its secrets."""


class VaultClient:
    """AppRole-authenticated reader for secrets under accounts/."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_namespace: str | None = None,
    ):
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        role_id = os.getenv("VAULT_ROLE_ID")
        secret_id = os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")
        if not (role_id and secret_id):
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        if namespace:
            self.client = hvac.Client(url=self.vault_addr, namespace=namespace)
        else:
            self.client = hvac.Client(url=self.vault_addr)
        self._login(role_id, secret_id)

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            auth = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except Exception as e:
            logger.error(f"AppRole authentication failed against {self.vault_addr}: {e}")
            raise VaultError(f"AppRole authentication failed: {e}") from e

        self.client.token = auth["auth"]["client_token"]
        if not self.client.is_authenticated():
            raise VaultError("Vault rejected the AppRole token")
        logger.info(f"Authenticated to Vault at {self.vault_addr}")

    def read(self, path: str) -> Dict[str, str]:
        """Whole KV v2 secret at accounts/<path>.

        Raises:
            PermissionError: Path missing or not readable by this role.
        """
        scoped = f"{_SECRET_PREFIX}/{path}"
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=scoped, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"Secret path not found: {scoped}")
            raise PermissionError(f"Secret path '{scoped}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {scoped}: {e}")
            raise PermissionError(f"Access denied to secret '{scoped}': {e}")
        return response["data"]["data"]


def _field(secret: Dict[str, str], path: str, field: str) -> str:
    if field not in secret:
        raise KeyError(
            f"Field '{field}' not found in secret '{_SECRET_PREFIX}/{path}'. "
            f"Available: {', '.join(secret)}"
        )
    return secret[field]


def _cached(path: str) -> Dict[str, str]:
    global _vault_client_instance
    if path not in _secret_cache:
        if _vault_client_instance is None:
            _vault_client_instance = VaultClient()
        _secret_cache[path] = _vault_client_instance.read(path)
    return _secret_cache[path]


def get_database_url() -> str:
    """PostgreSQL connection URL for the accounts store."""
    return _field(_cached("database"), "database", "url")


def get_valkey_url() -> str:
    """Valkey (Redis) connection URL for session storage."""
    return _field(_cached("valkey"), "valkey", "url")


def get_email_config() -> Dict[str, str]:
    """Email gateway settings: gateway_url, api_key, hmac_secret.

    Raises KeyError if any of the three is missing; callers treat that as
    "email not configured".
    """
    secret = _cached("email")
    return {f: _field(secret, "email", f) for f in ("gateway_url", "api_key", "hmac_secret")}
