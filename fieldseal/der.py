"""
fieldseal DER Reader & RSA Public Key Extractor
================================================

Just enough ASN.1 DER to pull an RSA modulus and exponent out of a PEM
public key.  Two payload shapes are accepted:

::

    SubjectPublicKeyInfo ::= SEQUENCE {
        algorithm  SEQUENCE { OID rsaEncryption, NULL (optional) },
        subjectPublicKey  BIT STRING  -- wraps RSAPublicKey
    }

    RSAPublicKey ::= SEQUENCE {
        modulus         INTEGER,
        publicExponent  INTEGER
    }

Element layout (tag, length, value)::

    tag     1 byte   (only the low 5 bits are compared)
    length  1 byte   0x00-0x7F = literal length
                     0x81-0x84 = low 7 bits give the count of
                                 big-endian length bytes that follow
    value   `length` bytes

This is not a general ASN.1 library.  Nodes are views (offsets) over the
input buffer; bytes are only copied where a reader explicitly slices.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from .errors import MalformedKeyError, UnexpectedTagError, UnsupportedBitStringError

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TAG_INTEGER: int = 0x02
TAG_BIT_STRING: int = 0x03
TAG_NULL: int = 0x05
TAG_OID: int = 0x06
TAG_SEQUENCE: int = 0x10

TAG_NUMBER_MASK: int = 0x1F
LONG_FORM_BIT: int = 0x80

# 1.2.840.113549.1.1.1, content octets only
RSA_ENCRYPTION_OID: bytes = bytes.fromhex("2a864886f70d010101")

_PEM_ARMOR = re.compile(r"-----(BEGIN|END) [^-]+-----")
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# PEM armor
# ---------------------------------------------------------------------------


def pem_to_der(pem: str) -> bytes:
    """
    Strip PEM delimiters and whitespace, then base64-decode the body.

    Raises
    ------
    MalformedKeyError
        If the input is not text, the body is empty, or the body is not
        valid base64.
    """
    if isinstance(pem, bytes):
        try:
            pem = pem.decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedKeyError("PEM text must be ASCII.") from exc
    if not isinstance(pem, str):
        raise MalformedKeyError(f"PEM must be text, got {type(pem).__name__}.")
    body = _WHITESPACE.sub("", _PEM_ARMOR.sub("", pem))
    if not body:
        raise MalformedKeyError("PEM body is empty.")
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedKeyError("PEM body is not valid base64.") from exc


# ---------------------------------------------------------------------------
# Generic TLV cursor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DerNode:
    """One DER element: its tag and the [start, end) span of its content."""
    tag: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def read_node(buf: bytes, offset: int) -> Tuple[DerNode, int]:
    """
    Read the element header at *offset*.

    Returns ``(node, next_offset)`` where *next_offset* is the first byte
    after the element's content, i.e. where the next sibling starts.
    """
    if offset < 0 or offset + 2 > len(buf):
        raise MalformedKeyError(f"DER: truncated element header at offset {offset}.")
    tag = buf[offset]
    length = buf[offset + 1]
    pos = offset + 2
    if length & LONG_FORM_BIT:
        count = length & 0x7F
        if count == 0:
            raise MalformedKeyError("DER: indefinite length is not allowed.")
        if pos + count > len(buf):
            raise MalformedKeyError(f"DER: truncated length field at offset {offset}.")
        length = int.from_bytes(buf[pos : pos + count], "big")
        pos += count
    end = pos + length
    if end > len(buf):
        raise MalformedKeyError(
            f"DER: element at offset {offset} claims {length} bytes, "
            f"only {len(buf) - pos} available."
        )
    return DerNode(tag, pos, end), end


def _expect(buf: bytes, offset: int, tag: int, name: str) -> Tuple[DerNode, int]:
    node, nxt = read_node(buf, offset)
    if node.tag & TAG_NUMBER_MASK != tag:
        raise UnexpectedTagError(
            f"DER: expected {name} at offset {offset}, found tag 0x{node.tag:02x}."
        )
    return node, nxt


# ---------------------------------------------------------------------------
# Typed readers
# ---------------------------------------------------------------------------


def read_sequence(buf: bytes, offset: int) -> Tuple[DerNode, int]:
    return _expect(buf, offset, TAG_SEQUENCE, "SEQUENCE")


def read_integer(buf: bytes, offset: int) -> Tuple[int, bytes, int]:
    """
    Read an unsigned INTEGER.

    Returns ``(value, raw, next_offset)``.  *raw* has the single leading
    ``0x00`` sign byte removed (when the content is longer than one byte)
    and is what key-length measurement is based on.
    """
    node, nxt = _expect(buf, offset, TAG_INTEGER, "INTEGER")
    if node.length == 0:
        raise MalformedKeyError(f"DER: empty INTEGER at offset {offset}.")
    start = node.start
    if node.length > 1 and buf[start] == 0x00:
        start += 1
    raw = bytes(buf[start : node.end])
    return int.from_bytes(raw, "big"), raw, nxt


def read_bit_string(buf: bytes, offset: int) -> Tuple[bytes, int]:
    """Read a byte-aligned BIT STRING and return ``(inner_bytes, next_offset)``."""
    node, nxt = _expect(buf, offset, TAG_BIT_STRING, "BIT STRING")
    if node.length == 0:
        raise MalformedKeyError(f"DER: empty BIT STRING at offset {offset}.")
    unused = buf[node.start]
    if unused != 0:
        raise UnsupportedBitStringError(
            f"DER: BIT STRING with {unused} unused bits is not supported."
        )
    return bytes(buf[node.start + 1 : node.end]), nxt


def read_oid(buf: bytes, offset: int) -> Tuple[bytes, int]:
    node, nxt = _expect(buf, offset, TAG_OID, "OBJECT IDENTIFIER")
    return bytes(buf[node.start : node.end]), nxt


def read_null(buf: bytes, offset: int) -> int:
    node, nxt = _expect(buf, offset, TAG_NULL, "NULL")
    if node.length != 0:
        raise MalformedKeyError(f"DER: NULL at offset {offset} has content.")
    return nxt


# ---------------------------------------------------------------------------
# RSA public key
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RSAPublicKey:
    """
    RSA public key material.

    ``key_bytes`` is *k*, the width of every padded block and ciphertext,
    measured from the sign-stripped DER encoding of the modulus.
    """
    modulus: int
    exponent: int
    key_bytes: int

    @property
    def key_size(self) -> int:
        """Modulus size in bits."""
        return self.modulus.bit_length()


class ParseAttempt(NamedTuple):
    """Outcome of trying one key layout: exactly one of the fields is set."""
    key: Optional[RSAPublicKey] = None
    error: Optional[MalformedKeyError] = None

    @property
    def ok(self) -> bool:
        return self.key is not None


def _parse_pkcs1(buf: bytes) -> RSAPublicKey:
    seq, end = read_sequence(buf, 0)
    if end != len(buf):
        raise MalformedKeyError("DER: trailing data after RSAPublicKey.")
    modulus, raw_modulus, pos = read_integer(buf, seq.start)
    exponent, _, pos = read_integer(buf, pos)
    if pos != seq.end:
        raise MalformedKeyError("DER: RSAPublicKey integers do not fill their SEQUENCE.")
    if modulus == 0 or exponent == 0:
        raise MalformedKeyError("RSA modulus and exponent must be non-zero.")
    return RSAPublicKey(modulus=modulus, exponent=exponent, key_bytes=len(raw_modulus))


def _parse_spki(buf: bytes) -> RSAPublicKey:
    outer, end = read_sequence(buf, 0)
    if end != len(buf):
        raise MalformedKeyError("DER: trailing data after SubjectPublicKeyInfo.")
    alg, pos = read_sequence(buf, outer.start)
    oid, after_oid = read_oid(buf, alg.start)
    if oid != RSA_ENCRYPTION_OID:
        raise MalformedKeyError(f"SPKI algorithm {oid.hex()} is not rsaEncryption.")
    # parameters: absent or NULL, nothing else
    if after_oid < alg.end:
        after_oid = read_null(buf, after_oid)
    if after_oid != alg.end:
        raise MalformedKeyError("SPKI algorithm identifier has trailing data.")
    inner, pos = read_bit_string(buf, pos)
    if pos != outer.end:
        raise MalformedKeyError("DER: SubjectPublicKeyInfo children do not fill its SEQUENCE.")
    return _parse_pkcs1(inner)


def try_parse_spki(der: bytes) -> ParseAttempt:
    try:
        return ParseAttempt(key=_parse_spki(der))
    except MalformedKeyError as exc:
        return ParseAttempt(error=exc)


def try_parse_pkcs1(der: bytes) -> ParseAttempt:
    try:
        return ParseAttempt(key=_parse_pkcs1(der))
    except MalformedKeyError as exc:
        return ParseAttempt(error=exc)


def parse_public_key_der(der: bytes) -> RSAPublicKey:
    """
    Extract an RSA public key from DER bytes.

    SPKI is tried first, bare PKCS#1 second.

    Raises
    ------
    MalformedKeyError
        If the buffer is neither layout.
    """
    spki = try_parse_spki(der)
    if spki.ok:
        return spki.key
    log.debug("Not an SPKI key (%s), trying PKCS#1", spki.error)
    pkcs1 = try_parse_pkcs1(der)
    if pkcs1.ok:
        return pkcs1.key
    raise MalformedKeyError(
        f"Key is neither SPKI nor PKCS#1 RSAPublicKey "
        f"(SPKI: {spki.error}; PKCS#1: {pkcs1.error})"
    ) from pkcs1.error


def load_public_key(pem: str) -> RSAPublicKey:
    """Parse a PEM public key (SPKI or PKCS#1)."""
    return parse_public_key_der(pem_to_der(pem))
