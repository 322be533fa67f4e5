"""Random token and reference number helpers."""

import secrets
import string
from datetime import datetime
from typing import Optional

_ALPHANUMERIC = string.ascii_letters + string.digits


def urlsafe_token(nbytes: int = 16) -> str:
    return secrets.token_urlsafe(nbytes)


def hex_token(nbytes: int = 16) -> str:
    return secrets.token_hex(nbytes)


def alphanumeric(length: int) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def reference_number(prefix: str, now: Optional[datetime] = None) -> str:
    """E.g. ``CMA-20250114-A1B2C3``."""
    now = now or datetime.utcnow()
    return f"{prefix}-{now.strftime('%Y%m%d')}-{alphanumeric(6).upper()}"
