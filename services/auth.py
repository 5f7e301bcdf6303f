"""
Shared-password gate for the dashboard.

Hashes are handled by passlib. DASHBOARD_PASSWORD_HASH may hold a bcrypt
hash (as produced by ``hash_password``) or a plain SHA-256 hex digest.
"""

import logging
from typing import Optional

from passlib.context import CryptContext

from config import Settings, get_settings

logger = logging.getLogger(__name__)

# bcrypt for new hashes; hex digests are still accepted
_pwd_context = CryptContext(
    schemes=["bcrypt", "hex_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """bcrypt hash of a password, suitable for DASHBOARD_PASSWORD_HASH."""
    return _pwd_context.hash(password)


def _configured_hash(settings: Settings) -> str:
    if settings.dashboard_password_hash:
        configured = settings.dashboard_password_hash.strip()
        if configured.startswith("$"):
            return configured
        return configured.lower()
    return _pwd_context.hash(settings.dashboard_password)


def verify_password(candidate: str, settings: Optional[Settings] = None) -> bool:
    """
    Check a submitted password against the configured one.

    DASHBOARD_PASSWORD_HASH wins over DASHBOARD_PASSWORD. With neither
    set, every attempt is refused.
    """
    settings = settings or get_settings()
    if not settings.is_password_configured:
        logger.error("No dashboard password configured, refusing login")
        return False

    try:
        ok = _pwd_context.verify(candidate or "", _configured_hash(settings))
    except ValueError as e:
        logger.error(f"Unreadable DASHBOARD_PASSWORD_HASH: {e}")
        return False
    if not ok:
        logger.warning("Rejected dashboard login attempt")
    return ok
