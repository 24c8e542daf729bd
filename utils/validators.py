"""
Request input validators.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import unquote

from core.errors import InvalidEmailError


def require_email(raw: Optional[str]) -> str:
    """
    Return the URL-unescaped email address or raise ``InvalidEmailError``.

    Only minimal validation is done: the value must be present and contain
    an '@'.
    """
    if not raw:
        raise InvalidEmailError(InvalidEmailError.MISSING)
    email = unquote(raw).strip()
    if "@" not in email:
        raise InvalidEmailError(InvalidEmailError.INVALID)
    return email
