"""
Encryption of provider access tokens for client-side storage.

The access token is never handed to the browser in plaintext. It is
encrypted with Fernet (AES-128-CBC, authenticated with HMAC-SHA256) under a
key derived from the client secret, so only this filter can read the session
cookie back.
"""

import base64
import hashlib
from typing import Union

from cryptography.fernet import Fernet, InvalidToken

from .exceptions import CorruptToken
from .logging import getLogger

logger = getLogger(__name__)


def _fernet(secret: str) -> Fernet:
    key = hashlib.sha256(secret.encode('utf-8')).digest()
    return Fernet(base64.urlsafe_b64encode(key))


def encode(token: str, secret: str) -> str:
    """Encrypt an access token as URL-safe text."""
    return _fernet(secret).encrypt(token.encode('utf-8')).decode('ascii')


def decode(token: str, secret: str) -> Union[str, CorruptToken]:
    """
    Decrypt a value produced by :func:`.encode`.

    Parameters
    ----------
    token : str
        Opaque session cookie value.
    secret : str
        The client secret.

    Returns
    -------
    str or :class:`.CorruptToken`
        The access token, or a :class:`.CorruptToken` (returned, not raised)
        if ``token`` is malformed, was encrypted under another secret, or
        holds an empty token.

    """
    try:
        raw = _fernet(secret).decrypt(token.encode('utf-8'))
    except (InvalidToken, UnicodeEncodeError) as e:
        logger.debug('Session token does not decrypt: %s', type(e).__name__)
        return CorruptToken('Session token does not decrypt')
    try:
        access_token = raw.decode('utf-8')
    except UnicodeDecodeError:
        return CorruptToken('Session token is not text')
    if not access_token:
        return CorruptToken('Session token is empty')
    return access_token
