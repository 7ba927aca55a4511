"""Password hashing for stored credentials."""

import bcrypt

from pizza_core.core.errors import InternalError

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# bcrypt ignores everything past 72 bytes; truncate explicitly so newer bcrypt releases don't raise.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for user input validation at the CLI boundary.
NAME_MIN_LEN = 1
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128


class CredentialHasher:
    """Salted adaptive hash with a cost factor fixed at construction."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            digest = bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError) as exc:
            raise InternalError("unable to hash credential") from exc
        return digest.decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash (constant time)."""
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False
