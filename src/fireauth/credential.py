"""Client-side sanity checks for raw credentials.

These run before any round trip so that obviously malformed input is
rejected locally.  The identity provider remains the authority: passing
these checks does not mean the server will accept the value.
"""

from __future__ import annotations

import re

MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def is_valid_email(email: str) -> bool:
    """Return ``True`` if *email* looks like ``local@domain.tld``."""
    return bool(_EMAIL_RE.match(email))


def is_valid_password(password: str) -> bool:
    """Return ``True`` if *password* meets the provider's minimum length."""
    return len(password) >= MIN_PASSWORD_LENGTH
