"""
Token models for the CSRF wire format and the encrypted payload
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SEPARATOR = "|"

_TIMESTAMP_RE = re.compile(r"[+-]?[0-9]+")


class MalformedTokenError(ValueError):
    """Raised when a token does not follow the ``<id>|<hex>`` wire format"""
    pass


class MalformedPayloadError(ValueError):
    """Raised when decrypted plaintext is not ``<session>|<timestamp>``"""
    pass


class TokenParts(BaseModel):
    """
    Wire representation of a CSRF token: ``token_id|ciphertext_hex``
    """
    model_config = ConfigDict(frozen=True)

    token_id: str = Field(..., description="Hex token identifier, doubles as nonce")
    ciphertext_hex: str = Field(..., description="Hex AES-GCM ciphertext with tag")

    @classmethod
    def parse(cls, token: Any) -> "TokenParts":
        """
        Split a token at its first separator.

        Args:
            token: Incoming token value

        Returns:
            TokenParts

        Raises:
            MalformedTokenError: If token is not a string or lacks a separator
        """
        if not isinstance(token, str) or SEPARATOR not in token:
            raise MalformedTokenError("CSRF token is not properly formed")

        token_id, _, ciphertext_hex = token.partition(SEPARATOR)
        return cls(token_id=token_id, ciphertext_hex=ciphertext_hex)

    def encode(self) -> str:
        """Assemble the wire form"""
        return f"{self.token_id}{SEPARATOR}{self.ciphertext_hex}"

    def __str__(self) -> str:
        return self.encode()


class TokenPayload(BaseModel):
    """
    Plaintext sealed inside a token: ``session_id|issued_at``
    """
    model_config = ConfigDict(frozen=True)

    session_id: str
    issued_at: int = Field(..., description="Issue time in epoch milliseconds")

    def to_plaintext(self) -> str:
        """Render the plaintext that gets encrypted"""
        return f"{self.session_id}{SEPARATOR}{self.issued_at}"

    @classmethod
    def from_plaintext(cls, plaintext: str) -> "TokenPayload":
        """
        Parse decrypted plaintext.

        The split happens at the last separator; a decimal timestamp never
        contains one, so session identifiers containing ``|`` survive.

        Raises:
            MalformedPayloadError: If the separator or timestamp is missing
        """
        session_id, sep, stamp = plaintext.rpartition(SEPARATOR)
        if not sep:
            raise MalformedPayloadError("Decrypted payload has no separator")
        if not _TIMESTAMP_RE.fullmatch(stamp):
            raise MalformedPayloadError("Decrypted payload timestamp is not an integer")

        return cls(session_id=session_id, issued_at=int(stamp))

    def is_expired(self, now: int, allowed_expiry: int) -> bool:
        """Expired when ``issued_at + allowed_expiry < now`` (boundary inclusive)"""
        return self.issued_at + allowed_expiry < now
