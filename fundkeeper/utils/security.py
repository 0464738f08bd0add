"""
fundkeeper/utils/security.py

bcrypt helpers for password storage. bcrypt salts every hash and embeds the
cost factor in it, so verify_password works for hashes made with any rounds.
"""

import bcrypt

DEFAULT_ROUNDS = 10
MAX_PASSWORD_BYTES = 72

# Used to equalize login timing when the username does not exist
_DUMMY_HASH = bcrypt.hashpw(b"fundkeeper-dummy", bcrypt.gensalt(rounds=DEFAULT_ROUNDS))


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Hash a plain-text password with a fresh salt.

    Raises:
        ValueError: if the password is longer than bcrypt's 72-byte input limit.
    """
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be {MAX_PASSWORD_BYTES} bytes or fewer")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Constant-time check of a plain-text password against a stored hash.
    Malformed hashes and over-long passwords simply fail to verify.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def burn_verification(password: str) -> None:
    """Run one bcrypt check against a throwaway hash and discard the result."""
    try:
        bcrypt.checkpw(password.encode("utf-8"), _DUMMY_HASH)
    except ValueError:
        pass
