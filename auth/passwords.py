"""bcrypt password hashing. Hashes are only ever checked through verify()."""

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only considers the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """One-way hash and verify for account passwords."""

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        """Hash password with a fresh salt."""
        return bcrypt.hashpw(self._encode(password), bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """True if password matches. Malformed hashes never match."""
        try:
            return bcrypt.checkpw(self._encode(password), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False
