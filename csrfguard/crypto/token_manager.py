"""
CSRFTokenManager for stateless CSRF token generation and validation
"""

import logging
import secrets
from typing import TYPE_CHECKING, Optional

from ..clock import Clock, system_clock
from ..diagnostics import (
    DiagnosticsSink,
    MetricsDiagnosticsSink,
    NullDiagnosticsSink,
    StderrDiagnosticsSink,
    StructlogDiagnosticsSink,
)
from ..metrics import Metrics
from .crypto_service import CryptoError, CryptoService, RandomSource
from .token_models import (
    MalformedPayloadError,
    MalformedTokenError,
    TokenParts,
    TokenPayload,
)

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

# 60 minutes in milliseconds
DEFAULT_EXPIRY = 60 * 60 * 1000

DEFAULT_CSRF_TOKEN_NAME = "csrf_token"


class CSRFTokenManager:
    """
    Generates and validates stateless CSRF synchronizer tokens.

    Tokens are tied to a session but stored nowhere, so they can be issued
    and checked anywhere in an application.

    Generation:
    1. Draw a random token ID (8 bytes, hex-encoded)
    2. Read the current time from the configured clock
    3. Build the plaintext ``session_id|timestamp``
    4. Encrypt it with AES-GCM, using the first 16 bytes of the session id
       as key and the token ID as nonce
    5. Prepend the token ID: ``token_id|hex(ciphertext)``

    Validation reverses this: split the token, decrypt with the caller's
    session id, then check that the full session id matches and that the
    timestamp lies within the allowed expiry from now.

    Rejections are never raised; they go to the diagnostics sink (stderr by
    default) and show up as ``None``/``False``. Only programming errors,
    such as a ``None`` session id, raise ``ValueError``.

    Thread safety: the manager keeps no per-call state. Sharing one instance
    between threads is safe provided the injected random source and
    diagnostics sink are themselves thread-safe.
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        clock: Optional[Clock] = None,
        *,
        token_name: str = DEFAULT_CSRF_TOKEN_NAME,
        allowed_expiry: int = DEFAULT_EXPIRY,
        diagnostics: Optional[DiagnosticsSink] = None,
        crypto: Optional[CryptoService] = None,
        metrics: Optional[Metrics] = None,
    ):
        """
        Initialize CSRFTokenManager

        Args:
            random_source: Secure random byte source (default: secrets.token_bytes)
            clock: Callable returning epoch milliseconds, truncated to int
                   (default: system UTC clock)
            token_name: Name of the request parameter carrying the token
            allowed_expiry: Token lifetime in milliseconds
            diagnostics: Sink for misuse/validation/internal notices
            crypto: CryptoService override; built from random_source if omitted.
                    Cannot be combined with random_source.
            metrics: Optional Prometheus metrics for generation/validation counts

        Raises:
            ValueError: If token_name is None, allowed_expiry is negative, or
                        both crypto and random_source are given
        """
        if crypto is not None and random_source is not None:
            raise ValueError("Pass either crypto or random_source, not both")

        self._crypto = crypto or CryptoService(random_source or secrets.token_bytes)
        self._clock = clock or system_clock
        self._metrics = metrics
        self._diagnostics: DiagnosticsSink = (
            diagnostics if diagnostics is not None else StderrDiagnosticsSink()
        )
        self.token_name = token_name
        self.allowed_expiry = allowed_expiry

    @classmethod
    def from_settings(
        cls,
        settings: Optional["Settings"] = None,
        metrics: Optional[Metrics] = None,
        **kwargs,
    ) -> "CSRFTokenManager":
        """
        Build a manager from application settings

        Args:
            settings: Settings instance (default: get_settings())
            metrics: Metrics to use when CSRF_METRICS_ENABLED is set
            **kwargs: Passed through to the constructor (random_source, clock, ...)

        Returns:
            Configured CSRFTokenManager
        """
        from ..config import get_settings

        settings = settings or get_settings()

        if settings.CSRF_DIAGNOSTICS == "structlog":
            sink: DiagnosticsSink = StructlogDiagnosticsSink()
        elif settings.CSRF_DIAGNOSTICS == "null":
            sink = NullDiagnosticsSink()
        else:
            sink = StderrDiagnosticsSink()

        if settings.CSRF_METRICS_ENABLED:
            metrics = metrics or Metrics()
            sink = MetricsDiagnosticsSink(metrics, inner=sink)
        else:
            metrics = None

        return cls(
            token_name=settings.CSRF_TOKEN_NAME,
            allowed_expiry=settings.CSRF_ALLOWED_EXPIRY_MS,
            diagnostics=sink,
            metrics=metrics,
            **kwargs,
        )

    @property
    def token_name(self) -> str:
        """Name of the request parameter carrying the token (convenience only)"""
        return self._token_name

    @token_name.setter
    def token_name(self, value: str) -> None:
        if value is None:
            raise ValueError("Provided CSRF token name is None")
        self._token_name = value

    @property
    def allowed_expiry(self) -> int:
        """
        Token lifetime in milliseconds.

        Changes apply to all outstanding tokens at once: raising the expiry
        from 10 to 20 minutes makes a 19 minute old token valid again.
        """
        return self._allowed_expiry

    @allowed_expiry.setter
    def allowed_expiry(self, value: int) -> None:
        if value is None:
            raise ValueError("Provided token expiration is None")
        if value < 0:
            raise ValueError("Provided token expiration is negative")
        self._allowed_expiry = value

    @property
    def diagnostics(self) -> DiagnosticsSink:
        return self._diagnostics

    @diagnostics.setter
    def diagnostics(self, sink: DiagnosticsSink) -> None:
        if sink is None:
            raise ValueError("Provided diagnostics sink is None")
        self._diagnostics = sink

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def random_source(self) -> RandomSource:
        return self._crypto.random_source

    def generate_token(self, session_id: str) -> Optional[str]:
        """
        Build a token protecting requests of the given session

        Args:
            session_id: Session identifier of the current request
                        (at least 16 bytes as UTF-8)

        Returns:
            New token string, or None if no token could be produced

        Raises:
            ValueError: If session_id is None or empty
        """
        if not session_id:
            raise ValueError("Token cannot be generated from an empty session id")

        problem = self._session_problem(session_id)
        if problem:
            self._diagnostics.notify_misuse(f"Token cannot be generated: {problem}")
            return None

        token_id = self._crypto.generate_token_id()
        payload = TokenPayload(session_id=session_id, issued_at=self._now())

        try:
            key = self._crypto.derive_key(session_id)
            nonce = self._crypto.derive_nonce(token_id)
            ciphertext = self._crypto.encrypt_string(key, nonce, payload.to_plaintext())
        except CryptoError as e:
            self._diagnostics.notify_internal_failure(
                f"CSRF token generation failed for token id {token_id}", e
            )
            return None

        token = TokenParts(
            token_id=token_id,
            ciphertext_hex=self._crypto.encode_hex(ciphertext),
        ).encode()

        if self._metrics:
            self._metrics.record_generated()
        logger.debug(f"Generated CSRF token {token_id}")

        return token

    def validate_token(self, token: str, session_id: str) -> bool:
        """
        Check that a token was issued for this session and has not expired

        Args:
            token: Incoming token value
            session_id: Session identifier of the current request

        Returns:
            True if the token is valid for this session, False otherwise

        Raises:
            ValueError: If session_id is None
        """
        if session_id is None:
            raise ValueError("Provided session id is None")

        valid = self._validate(token, session_id)

        if self._metrics:
            self._metrics.record_validation(valid)

        return valid

    def _validate(self, token: str, session_id: str) -> bool:
        try:
            parts = TokenParts.parse(token)
        except MalformedTokenError as e:
            self._diagnostics.notify_misuse(str(e))
            return False

        problem = self._session_problem(session_id)
        if problem:
            self._diagnostics.notify_misuse(f"Token cannot be validated: {problem}")
            return False

        now = self._now()

        try:
            key = self._crypto.derive_key(session_id)
            nonce = self._crypto.derive_nonce(parts.token_id)
            ciphertext = self._crypto.decode_hex(parts.ciphertext_hex)
            plaintext = self._crypto.decrypt_to_string(key, nonce, ciphertext)
        except CryptoError as e:
            self._diagnostics.notify_internal_failure(
                f"Could not validate CSRF token {parts.token_id} due to exception", e
            )
            return False

        try:
            payload = TokenPayload.from_plaintext(plaintext)
        except MalformedPayloadError as e:
            self._diagnostics.notify_validation_failure(
                f"CSRF token {parts.token_id} decrypted to a malformed payload: {e}"
            )
            return False

        if not secrets.compare_digest(
            payload.session_id.encode("utf-8"), session_id.encode("utf-8")
        ):
            self._diagnostics.notify_validation_failure(
                f"CSRF token {parts.token_id} was issued for a different session"
            )
            return False

        if payload.is_expired(now, self._allowed_expiry):
            self._diagnostics.notify_validation_failure(
                f"CSRF token {parts.token_id} has expired. Issued at {payload.issued_at}, now {now}"
            )
            return False

        logger.debug(f"CSRF token {parts.token_id} validated")
        return True

    def _now(self) -> int:
        # clocks may report fractional milliseconds
        return int(self._clock())

    @staticmethod
    def _session_problem(session_id: str) -> Optional[str]:
        """Describe why a session id cannot serve as key material, or None"""
        try:
            size = len(session_id.encode("utf-8"))
        except UnicodeEncodeError:
            return "session id is not valid UTF-8"
        if size < CryptoService.KEY_SIZE:
            return f"session size less than {CryptoService.KEY_SIZE} bytes"
        return None
