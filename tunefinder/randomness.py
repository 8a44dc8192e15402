"""Random identifiers for temporary files."""

from __future__ import annotations

import secrets
import string

_ALPHANUMERIC = string.ascii_letters + string.digits


def random_string(length: int) -> str:
    """Return a random string of ASCII letters and digits."""
    if length < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))