"""
Password hashing using bcrypt.
"""

import bcrypt

BCRYPT_ROUNDS = 12

# bcrypt ignores everything past the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Password hashing service."""

    rounds = BCRYPT_ROUNDS

    @classmethod
    def hash(cls, password: str) -> str:
        """Hash a password with a fresh salt."""
        salt = bcrypt.gensalt(rounds=cls.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    @staticmethod
    def verify(plain_password: str, hashed_password: str) -> bool:
        """Check a password against a stored hash; malformed hashes never match."""
        try:
            return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
        except ValueError:
            return False


def hash_password(password: str) -> str:
    """Hash a password."""
    return PasswordHasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password."""
    return PasswordHasher.verify(plain_password, hashed_password)
