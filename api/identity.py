"""
Signed email tokens for the query editor.

The callback page is the only place an email address is proven by the
identity provider.  It hands out an HMAC of that address; the query editor's
write path accepts a query only when the submitted signature matches the
submitted email.  Stores are keyed by the exact address, so the exact string
is signed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from config.settings import DEFAULT_QUERY_SIGNING_SECRET, Settings, config

logger = logging.getLogger(__name__)


def sign_email(email: str, secret: str | None = None) -> str:
    key = (secret or config.query_signing_secret).encode()
    return hmac.new(key, email.encode(), hashlib.sha256).hexdigest()[:32]


def verify_email_signature(email: str, signature: str | None, secret: str | None = None) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(signature, sign_email(email, secret))


def check_signing_secret(settings: Settings) -> None:
    """
    Refuse to run with the published default secret while identity
    verification is on.  Debug mode only warns.

    Raises
    ------
    RuntimeError
        If the default secret is in use outside debug mode.
    """
    if not settings.verify_query_identity:
        logger.warning("VERIFY_QUERY_IDENTITY is off — query edits are not tied to an authorized email")
        return
    if settings.query_signing_secret != DEFAULT_QUERY_SIGNING_SECRET:
        return
    message = "QUERY_SIGNING_SECRET is the built-in default — query-editor signatures can be forged"
    if settings.debug:
        logger.warning(message)
        return
    raise RuntimeError(message)
