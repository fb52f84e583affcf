"""
AES-256-GCM encryption for sensitive configuration values.

Encrypted values are ``iv:tag:ciphertext`` with each part base64
encoded. Values that are not in this format decrypt to themselves so
rows written before encryption was enabled keep working.
"""
import base64
import binascii
import hashlib
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

IV_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32


def get_encryption_key():
    """
    Return the 32-byte key.

    Priority: INKPRESS["ENCRYPTION_KEY"] (hex), then a key derived from
    SECRET_KEY.
    """
    from .conf import blog_settings

    configured = blog_settings.ENCRYPTION_KEY
    if configured:
        try:
            key = bytes.fromhex(configured)
        except ValueError:
            raise ImproperlyConfigured("ENCRYPTION_KEY must be hex encoded") from None
        if len(key) != KEY_LENGTH:
            raise ImproperlyConfigured("ENCRYPTION_KEY must be 32 bytes (64 hex characters)")
        return key

    if not settings.SECRET_KEY:
        raise ImproperlyConfigured("No encryption key available. Set ENCRYPTION_KEY or SECRET_KEY")
    return hashlib.sha256((settings.SECRET_KEY + "_settings_encryption").encode()).digest()


def _b64(data):
    return base64.b64encode(data).decode("ascii")


def _split(value):
    """Return (iv, tag, ciphertext) bytes or None if *value* is not ours."""
    if not value or ":" not in value:
        return None
    parts = value.split(":")
    if len(parts) != 3:
        return None
    try:
        iv, tag, ciphertext = (base64.b64decode(p, validate=True) for p in parts)
    except (binascii.Error, ValueError):
        return None
    if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
        return None
    return iv, tag, ciphertext


def encrypt(plaintext):
    """Encrypt a string; empty input stays empty."""
    if not plaintext:
        return ""
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(get_encryption_key()).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return f"{_b64(iv)}:{_b64(tag)}:{_b64(ciphertext)}"


def decrypt(value):
    """
    Decrypt a value produced by ``encrypt``.

    Plaintext, foreign formats and values that fail authentication are
    returned unchanged.
    """
    if not value:
        return ""
    parts = _split(value)
    if parts is None:
        return value
    iv, tag, ciphertext = parts
    try:
        plain = AESGCM(get_encryption_key()).decrypt(iv, ciphertext + tag, None)
    except InvalidTag:
        logger.warning("Could not decrypt a stored secret; returning it unchanged")
        return value
    return plain.decode("utf-8")


def is_encrypted(value):
    """Check if a value looks like an ``encrypt`` result."""
    return _split(value) is not None
