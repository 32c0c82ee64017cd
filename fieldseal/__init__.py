"""
fieldseal
=========

Client-side RSA PKCS#1 v1.5 encryption of selected request fields.

- Parses SPKI or PKCS#1 PEM public keys with a minimal DER reader
- Pads and encrypts with plain Python integers
- Sends encrypted fields with an ``X-Encrypted-Fields`` marker header
- Fetches the server key once per process
"""

from .errors import (
    ApiError,
    FieldSealError,
    MalformedKeyError,
    MessageTooLongError,
    NetworkError,
    UnexpectedTagError,
    UnsupportedBitStringError,
    UnsupportedFieldTypeError,
)
from .der import RSAPublicKey, load_public_key, parse_public_key_der, pem_to_der
from .pkcs1 import PKCS1Engine, encrypt, encrypt_with_pem, mod_pow
from .settings import ClientSettings, get_settings
from .transport import ApiClient
from .key_provider import PublicKeyProvider, get_public_key_pem
from .encrypted import EncryptedEnvelope, encrypt_fields, post_encrypted
from .auth import AuthApi

__version__ = "0.1.0"

__all__ = [
    "FieldSealError", "MalformedKeyError", "UnexpectedTagError",
    "UnsupportedBitStringError", "MessageTooLongError",
    "UnsupportedFieldTypeError", "NetworkError", "ApiError",
    "RSAPublicKey", "load_public_key", "parse_public_key_der", "pem_to_der",
    "PKCS1Engine", "encrypt", "encrypt_with_pem", "mod_pow",
    "ClientSettings", "get_settings",
    "ApiClient",
    "PublicKeyProvider", "get_public_key_pem",
    "EncryptedEnvelope", "encrypt_fields", "post_encrypted",
    "AuthApi",
]
