"""
Core Cryptographic Service for csrfguard

Implements the primitives behind stateless CSRF tokens:
- Random token ID generation
- Key and nonce derivation from session material
- AES-GCM authenticated encryption/decryption
- Strict hex encoding/decoding
"""

import binascii
import secrets
from typing import Callable, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

RandomSource = Callable[[int], bytes]


class CryptoError(Exception):
    """Base exception for cryptographic operations"""
    pass


class KeyDerivationError(CryptoError):
    """Raised when key or nonce material is unusable"""
    pass


class EncryptionError(CryptoError):
    """Raised when encryption fails"""
    pass


class DecryptionError(CryptoError):
    """Raised when decryption, tag verification or decoding fails"""
    pass


class CryptoService:
    """
    Cryptographic service providing the token codec primitives.

    Features:
    - Cryptographically secure random token IDs
    - AES-128-GCM with a 128-bit tag and empty associated data
    - Deterministic key/nonce derivation (nothing is cached or stored)

    The service holds no state besides its random source, so a single
    instance may be shared between threads as long as the random source
    itself is thread-safe.
    """

    TOKEN_ID_SIZE = 8   # random bytes, 16 chars once hex-encoded
    KEY_SIZE = 16       # AES-128
    NONCE_SIZE = 16     # UTF-8 bytes of the hex token ID
    TAG_BITS = 128

    def __init__(self, random_source: Optional[RandomSource] = None):
        """
        Initialize CryptoService.

        Args:
            random_source: Callable returning ``n`` secure random bytes.
                           Defaults to ``secrets.token_bytes``.
        """
        self._random = random_source or secrets.token_bytes

    @property
    def random_source(self) -> RandomSource:
        """Get the random byte source used for token IDs"""
        return self._random

    def generate_token_id(self, length: int = TOKEN_ID_SIZE) -> str:
        """
        Generate a random lowercase hex token ID.

        Args:
            length: Number of random bytes to draw (default: 8)

        Returns:
            Hex string representation (2x length characters)

        Raises:
            ValueError: If length is not positive
        """
        if length <= 0:
            raise ValueError("Token ID length must be positive")

        return self.encode_hex(self._random(length))

    @classmethod
    def derive_key(cls, session_id: str) -> bytes:
        """
        Derive the symmetric key from a session identifier.

        The key is the first 16 bytes of the UTF-8 encoded session
        identifier.

        Args:
            session_id: Caller supplied session identifier

        Returns:
            16-byte AES key

        Raises:
            KeyDerivationError: If the session identifier is too short or
                                not encodable as UTF-8
        """
        try:
            material = session_id.encode("utf-8")
        except UnicodeEncodeError as e:
            raise KeyDerivationError(f"Key material is not valid UTF-8: {e}") from e
        if len(material) < cls.KEY_SIZE:
            raise KeyDerivationError(
                f"Key material must be at least {cls.KEY_SIZE} bytes, got {len(material)}"
            )
        return material[:cls.KEY_SIZE]

    @classmethod
    def derive_nonce(cls, token_id: str) -> bytes:
        """
        Derive the GCM nonce from a token ID.

        Args:
            token_id: Hex token ID

        Returns:
            16-byte nonce (the UTF-8 bytes of the token ID)

        Raises:
            KeyDerivationError: If the token ID is not encodable as UTF-8 or
                                does not yield exactly 16 bytes
        """
        try:
            nonce = token_id.encode("utf-8")
        except UnicodeEncodeError as e:
            raise KeyDerivationError(f"Nonce material is not valid UTF-8: {e}") from e
        if len(nonce) != cls.NONCE_SIZE:
            raise KeyDerivationError(
                f"Nonce must be exactly {cls.NONCE_SIZE} bytes, got {len(nonce)}"
            )
        return nonce

    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        """
        Encrypt data using AES-GCM.

        Args:
            key: 16-byte key
            nonce: 16-byte nonce
            plaintext: Data to encrypt

        Returns:
            Ciphertext with the 16-byte authentication tag appended

        Raises:
            EncryptionError: If encryption fails
        """
        try:
            return AESGCM(key).encrypt(nonce, plaintext, None)
        except Exception as e:
            raise EncryptionError(f"Encryption failed: {e}") from e

    def encrypt_string(self, key: bytes, nonce: bytes, plaintext: str) -> bytes:
        """
        Encrypt a string using AES-GCM.

        Args:
            key: 16-byte key
            nonce: 16-byte nonce
            plaintext: String to encrypt (UTF-8 encoded before encryption)

        Returns:
            Ciphertext with tag

        Raises:
            EncryptionError: If encoding or encryption fails
        """
        try:
            plaintext_bytes = plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncryptionError(f"Failed to encode plaintext: {e}") from e
        return self.encrypt(key, nonce, plaintext_bytes)

    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        """
        Decrypt and authenticate data using AES-GCM.

        Args:
            key: 16-byte key
            nonce: 16-byte nonce
            ciphertext: Ciphertext with tag appended

        Returns:
            Decrypted plaintext

        Raises:
            DecryptionError: If the tag does not verify or decryption fails
        """
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptionError("Authentication tag mismatch") from e
        except Exception as e:
            raise DecryptionError(f"Decryption failed: {e}") from e

    def decrypt_to_string(self, key: bytes, nonce: bytes, ciphertext: bytes) -> str:
        """
        Decrypt data and return as a UTF-8 string.

        Raises:
            DecryptionError: If decryption or decoding fails
        """
        plaintext_bytes = self.decrypt(key, nonce, ciphertext)
        try:
            return plaintext_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError(f"Failed to decode decrypted data: {e}") from e

    @staticmethod
    def encode_hex(data: bytes) -> str:
        """Lowercase hex encoding"""
        return data.hex()

    @staticmethod
    def decode_hex(text: str) -> bytes:
        """
        Strictly decode a hex string.

        Unlike ``bytes.fromhex`` this rejects embedded whitespace.

        Raises:
            DecryptionError: On odd length or non-hex characters
        """
        try:
            return binascii.unhexlify(text)
        except (binascii.Error, ValueError) as e:
            raise DecryptionError(f"Invalid hex encoding: {e}") from e
