"""
fieldseal Field-Selective Encryption
====================================

Replace selected top-level fields of a JSON payload with base64
PKCS#1 v1.5 ciphertext.  The names of the replaced fields are sent in a
request header, not in the body::

    POST /auth/login
    X-Encrypted-Fields: password

    {"username": "alice", "password": "<base64 ciphertext>"}

The receiver decrypts exactly the listed fields and reads all others
literally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .der import RSAPublicKey
from .errors import UnsupportedFieldTypeError
from .key_provider import PublicKeyProvider
from .pkcs1 import encrypt
from .transport import ApiClient

log = logging.getLogger(__name__)

DEFAULT_HEADER = "X-Encrypted-Fields"


@dataclass
class EncryptedEnvelope:
    """Outgoing payload plus the names of the fields that were encrypted."""
    payload: Dict[str, Any]
    encrypted_fields: List[str] = field(default_factory=list)

    @property
    def marker(self) -> str:
        return ",".join(self.encrypted_fields)

    def headers(self, header_name: str = DEFAULT_HEADER) -> Dict[str, str]:
        if not self.encrypted_fields:
            return {}
        return {header_name: self.marker}


def coerce_field_value(name: str, value: Any) -> str:
    """
    Convert a field value to the text that gets encrypted.

    Only ``str`` and ``int`` are accepted.  ``bool`` is refused even
    though it subclasses ``int``, and so is ``float``, whose text form is
    ambiguous.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise UnsupportedFieldTypeError(
        f"Field '{name}' has type {type(value).__name__}; only str and int can be encrypted."
    )


def encrypt_fields(
    payload: Dict[str, Any],
    field_names: Iterable[str],
    key: RSAPublicKey,
) -> EncryptedEnvelope:
    """
    Encrypt the named fields of a shallow copy of *payload*.

    Fields that are absent or ``None`` are skipped and left out of the
    marker.  The caller's dict is not modified.
    """
    if isinstance(field_names, (str, bytes)):
        raise TypeError("field_names must be a list of names, not a single string.")
    out = dict(payload)
    done: List[str] = []
    for name in field_names:
        if name in done:
            continue
        value = out.get(name)
        if value is None:
            continue
        out[name] = encrypt(coerce_field_value(name, value), key)
        done.append(name)
    return EncryptedEnvelope(payload=out, encrypted_fields=done)


def post_encrypted(
    client: ApiClient,
    provider: PublicKeyProvider,
    path: str,
    payload: Dict[str, Any],
    field_names: Iterable[str],
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    """Encrypt *field_names* in *payload* and POST it to *path*."""
    key = provider.get_key()
    envelope = encrypt_fields(payload, field_names, key)
    send_headers = dict(headers or {})
    send_headers.update(envelope.headers(client.settings.encrypted_fields_header))
    log.debug("POST %s with encrypted fields [%s]", path, envelope.marker)
    return client.post(path, json=envelope.payload, headers=send_headers)
