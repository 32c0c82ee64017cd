"""
fieldseal PKCS#1 v1.5 Encryption Engine
========================================

Textbook RSA public-key encryption with PKCS#1 v1.5 (block type 2)
padding, computed with plain Python integers.

Encoded message layout (``k`` = key byte length)::

    EM = 0x00 || 0x02 || PS || 0x00 || M

      PS  k - len(M) - 3 random non-zero bytes (at least 8)
      M   UTF-8 plaintext, at most k - 11 bytes

The ciphertext ``c = EM^e mod n`` is re-encoded as exactly ``k`` bytes
(left-padded with zeros) and returned as standard base64 text.
"""

from __future__ import annotations

import base64
import secrets
from typing import Callable

from .der import RSAPublicKey, load_public_key
from .errors import MessageTooLongError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BLOCK_TYPE_ENCRYPT: int = 0x02
MIN_PADDING: int = 8
PKCS1_OVERHEAD: int = MIN_PADDING + 3  # 0x00, 0x02, separator

RandomBytes = Callable[[int], bytes]


# ---------------------------------------------------------------------------
# Integer <-> octet string
# ---------------------------------------------------------------------------


def os2ip(data: bytes) -> int:
    """Big-endian unsigned integer from bytes."""
    return int.from_bytes(data, "big")


def i2osp(value: int, length: int) -> bytes:
    """Fixed-width big-endian encoding of *value* in exactly *length* bytes."""
    if value < 0 or value >= 1 << (8 * length):
        raise ValueError(f"Integer too large for {length} bytes.")
    return value.to_bytes(length, "big")


# ---------------------------------------------------------------------------
# Modular exponentiation
# ---------------------------------------------------------------------------


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """
    Compute ``base ** exponent % modulus`` by square-and-multiply.

    Walks the exponent from its least significant bit, so the cost is one
    squaring per exponent bit plus one multiply per set bit.  Not
    constant-time; the exponent here is always public.
    """
    if modulus <= 0:
        raise ValueError("Modulus must be positive.")
    if exponent < 0 or base < 0:
        raise ValueError("Base and exponent must be non-negative.")
    if modulus == 1:
        return 0
    result = 1
    base %= modulus
    while exponent:
        if exponent & 1:
            result = result * base % modulus
        exponent >>= 1
        base = base * base % modulus
    return result


# ---------------------------------------------------------------------------
# Padding
# ---------------------------------------------------------------------------


def random_nonzero_bytes(length: int, randbytes: RandomBytes = secrets.token_bytes) -> bytes:
    """
    Return *length* random bytes, none of which is ``0x00``.

    Zero bytes are discarded and redrawn, never mapped to another value.
    """
    out = bytearray()
    while len(out) < length:
        chunk = randbytes(length - len(out))
        out.extend(b for b in chunk if b != 0)
    return bytes(out)


class PKCS1Engine:
    """
    PKCS#1 v1.5 encryption operations.

    All public methods are static; the class is a namespace mirrored by
    the module-level aliases below.
    """

    @staticmethod
    def max_message_length(key: RSAPublicKey) -> int:
        """Largest plaintext, in bytes, that fits in one block for *key*."""
        return key.key_bytes - PKCS1_OVERHEAD

    @staticmethod
    def pad(
        message: bytes,
        key_bytes: int,
        randbytes: RandomBytes = secrets.token_bytes,
    ) -> bytes:
        """
        Build the ``key_bytes``-long encoded message for *message*.

        Raises
        ------
        MessageTooLongError
            If ``len(message) > key_bytes - 11``.
        """
        limit = key_bytes - PKCS1_OVERHEAD
        if len(message) > limit:
            raise MessageTooLongError(
                f"Message is {len(message)} bytes; this key allows at most {max(limit, 0)}."
            )
        ps = random_nonzero_bytes(key_bytes - len(message) - 3, randbytes)
        return b"\x00" + bytes([BLOCK_TYPE_ENCRYPT]) + ps + b"\x00" + message

    @staticmethod
    def encrypt_bytes(
        message: bytes,
        key: RSAPublicKey,
        randbytes: RandomBytes = secrets.token_bytes,
    ) -> bytes:
        """Encrypt raw bytes; returns exactly ``key.key_bytes`` ciphertext bytes."""
        em = PKCS1Engine.pad(message, key.key_bytes, randbytes)
        c = mod_pow(os2ip(em), key.exponent, key.modulus)
        return i2osp(c, key.key_bytes)

    @staticmethod
    def encrypt(
        plaintext: str,
        key: RSAPublicKey,
        randbytes: RandomBytes = secrets.token_bytes,
    ) -> str:
        """Encrypt UTF-8 text and return the ciphertext as base64 text."""
        ct = PKCS1Engine.encrypt_bytes(plaintext.encode("utf-8"), key, randbytes)
        return base64.b64encode(ct).decode("ascii")

    @staticmethod
    def encrypt_with_pem(plaintext: str, pem: str) -> str:
        """Parse *pem* and encrypt *plaintext* with it."""
        return PKCS1Engine.encrypt(plaintext, load_public_key(pem))


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------

_engine = PKCS1Engine

max_message_length = _engine.max_message_length
pad = _engine.pad
encrypt_bytes = _engine.encrypt_bytes
encrypt = _engine.encrypt
encrypt_with_pem = _engine.encrypt_with_pem
