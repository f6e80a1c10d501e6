"""Infrastructure clients: Postgres, Valkey, the email gateway and Vault."""

from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.email_client import EmailGatewayClient, EmailGatewayError
from clients.vault_client import VaultClient, VaultError

__all__ = [
    "PostgresClient",
    "ValkeyClient",
    "EmailGatewayClient",
    "EmailGatewayError",
    "VaultClient",
    "VaultError",
]
