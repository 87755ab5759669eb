"""
csrfguard Cryptographic Module

Provides the stateless CSRF token codec:
- Token ID generation and key/nonce derivation
- AES-GCM authenticated encryption/decryption
- Token generation and validation bound to a session identifier
"""

from .crypto_service import (
    CryptoService,
    CryptoError,
    KeyDerivationError,
    EncryptionError,
    DecryptionError,
)
from .token_manager import CSRFTokenManager, DEFAULT_CSRF_TOKEN_NAME, DEFAULT_EXPIRY
from .token_models import (
    SEPARATOR,
    TokenParts,
    TokenPayload,
    MalformedTokenError,
    MalformedPayloadError,
)

__all__ = [
    "CryptoService",
    "CryptoError",
    "KeyDerivationError",
    "EncryptionError",
    "DecryptionError",
    "CSRFTokenManager",
    "DEFAULT_CSRF_TOKEN_NAME",
    "DEFAULT_EXPIRY",
    "SEPARATOR",
    "TokenParts",
    "TokenPayload",
    "MalformedTokenError",
    "MalformedPayloadError",
]
