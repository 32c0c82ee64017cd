"""
fieldseal exceptions
====================

Every error raised by the library derives from :class:`FieldSealError`.
"""

from __future__ import annotations

from typing import Optional


class FieldSealError(Exception):
    """Base exception for all fieldseal errors."""


class MalformedKeyError(FieldSealError):
    """PEM, base64 or DER key material is structurally invalid."""


class UnexpectedTagError(MalformedKeyError):
    """A DER element carries a different tag than the one expected."""


class UnsupportedBitStringError(MalformedKeyError):
    """BIT STRING with a non-zero unused-bits count."""


class MessageTooLongError(FieldSealError):
    """Plaintext does not fit in one PKCS#1 v1.5 block for this key."""


class UnsupportedFieldTypeError(FieldSealError, TypeError):
    """A field selected for encryption holds a value that cannot be coerced to text."""


class NetworkError(FieldSealError):
    """The transport failed to complete a request."""


class ApiError(NetworkError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, body: Optional[object] = None):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body
