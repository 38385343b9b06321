"""Random credential generation for student accounts.

Both generators draw from ``secrets.SystemRandom`` (OS entropy, no shared
state), so they are safe to call from concurrent request handlers.
"""
from __future__ import annotations
import secrets
import string

# Readable alphabets: no characters that are easily confused when a supervisor
# reads a password out to a student (0/O, 1/l/I).
READABLE_LOWER = "".join(c for c in string.ascii_lowercase if c not in "lo")
READABLE_UPPER = "".join(c for c in string.ascii_uppercase if c not in "IO")
READABLE_DIGITS = "23456789"
READABLE_ALPHABET = READABLE_LOWER + READABLE_UPPER + READABLE_DIGITS

USERNAME_LENGTH = 12
PASSWORD_LENGTH = 12

_random = secrets.SystemRandom()


def generate_username(length: int = USERNAME_LENGTH) -> str:
    """Generate a readable random username.

    Fallback name generator for provisioning paths where the supervisor does
    not choose a username (bulk or scripted account creation). The HTTP create
    route always takes the requested name instead. The result uses letters and
    digits only, so it always passes ``validators.validate_username``.

    Args:
        length: Username length (default: 12)

    Returns:
        Random string of letters and digits
    """
    return "".join(_random.choice(READABLE_ALPHABET) for _ in range(length))


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a readable random password.

    The result always contains a lowercase letter, an uppercase letter and a
    digit, which satisfies the identity provider's "fair" password policy.

    Args:
        length: Password length (default: 12, minimum: 8)

    Returns:
        Random password
    """
    if length < 8:
        raise ValueError("Password length must be at least 8")

    chars = [
        _random.choice(READABLE_LOWER),
        _random.choice(READABLE_UPPER),
        _random.choice(READABLE_DIGITS),
    ]
    chars.extend(_random.choice(READABLE_ALPHABET) for _ in range(length - len(chars)))
    _random.shuffle(chars)
    return "".join(chars)
