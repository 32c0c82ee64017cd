"""
fieldseal Public Key Provider
=============================

Fetch the server's RSA public key once and keep it for the life of the
process.  The provider is ordinary state: create one per client (tests
create their own) or use the lazily built default.

There is no in-flight de-duplication.  Callers that race on an empty
cache each fetch, and the last write wins.  Writes replace the whole
``(pem, key)`` pair in one assignment, so readers never see a PEM paired
with another fetch's parsed key.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .der import RSAPublicKey, load_public_key
from .errors import MalformedKeyError
from .transport import ApiClient

log = logging.getLogger(__name__)


class PublicKeyProvider:
    """Single-slot, never-invalidated cache over the key-fetch endpoint."""

    def __init__(self, client: ApiClient):
        self.client = client
        self._slot: Optional[Tuple[str, Optional[RSAPublicKey]]] = None

    @property
    def is_populated(self) -> bool:
        return self._slot is not None

    def get(self) -> str:
        """Return the cached PEM, fetching it on first use."""
        slot = self._slot
        if slot is not None:
            return slot[0]
        return self._fetch()

    def get_key(self) -> RSAPublicKey:
        """Return the parsed key, parsing the cached PEM at most once."""
        pem = self.get()
        slot = self._slot
        if slot is not None and slot[0] == pem and slot[1] is not None:
            return slot[1]
        key = load_public_key(pem)
        self._slot = (pem, key)
        return key

    def force_refresh(self) -> str:
        """Refetch the key, replacing whatever is cached."""
        return self._fetch()

    def _fetch(self) -> str:
        settings = self.client.settings
        log.info("Fetching server public key from %s", settings.public_key_path)
        resp = self.client.get(settings.public_key_path)
        pem = resp.get(settings.public_key_field) if isinstance(resp, dict) else None
        if not isinstance(pem, str) or not pem.strip():
            raise MalformedKeyError(
                f"Key-fetch response has no '{settings.public_key_field}' text field."
            )
        self._slot = (pem, None)
        return pem


# ---------------------------------------------------------------------------
# Process-wide default
# ---------------------------------------------------------------------------

_default_provider: Optional[PublicKeyProvider] = None


def default_provider() -> PublicKeyProvider:
    global _default_provider
    if _default_provider is None:
        _default_provider = PublicKeyProvider(ApiClient())
    return _default_provider


def get_public_key_pem(provider: Optional[PublicKeyProvider] = None) -> str:
    return (provider or default_provider()).get()
