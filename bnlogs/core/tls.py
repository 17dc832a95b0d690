"""Process-wide TLS bootstrap.

The client TLS context is built exactly once at startup, before any session
connects, and shared by every ``wss://`` connection afterwards.  Installing
it a second time is an explicit no-op: the existing context is returned and
never rebuilt.
"""

from __future__ import annotations

import logging
import ssl
import threading

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_context: ssl.SSLContext | None = None


class TLSNotInitializedError(RuntimeError):
    """Raised when the TLS context is requested before it was installed."""


def install_default_tls_context() -> ssl.SSLContext:
    """Build and install the shared client TLS context.

    Returns the installed context.  Subsequent calls return the same object.
    """
    global _context
    with _lock:
        if _context is not None:
            logger.debug("TLS context already installed; ignoring repeated install.")
            return _context
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        _context = context
        logger.debug(
            "Installed default TLS context (%s, minimum %s).",
            ssl.OPENSSL_VERSION,
            context.minimum_version.name,
        )
        return context


def get_tls_context() -> ssl.SSLContext:
    """Return the installed TLS context."""
    if _context is None:
        raise TLSNotInitializedError(
            "TLS context not installed; call install_default_tls_context() at startup."
        )
    return _context


def is_tls_installed() -> bool:
    return _context is not None
