"""Utilities for generating SQL user credentials."""

from __future__ import annotations

import secrets
import string
import time

PASSWORD_LENGTH = 12
DIGITS = string.digits
SYMBOLS = "~=+%^*/()[]{}/!@#$?|"
ALPHABET = string.ascii_uppercase + string.ascii_lowercase + DIGITS + SYMBOLS


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a random password with at least one digit and one symbol.

    The first two characters are drawn from the digit and symbol sets, the
    rest from the full alphabet, and the result is shuffled.
    """
    if length < 2:
        raise ValueError("password length must be at least 2")

    buf = [secrets.choice(DIGITS), secrets.choice(SYMBOLS)]
    buf.extend(secrets.choice(ALPHABET) for _ in range(length - 2))
    secrets.SystemRandom().shuffle(buf)
    return "".join(buf)


def generate_sql_username() -> str:
    """Generate a SQL user name unique to the nanosecond."""
    return f"sql_user_{time.time_ns()}"
