import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from google.api_core import exceptions as google_exceptions

from careercoach.services.errors import GenerationFailed, ServiceMisconfigured, ServiceOverloaded

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = 503
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 2.0


class ErrorKind(str, enum.Enum):
    OVERLOADED = "OVERLOADED"
    MISCONFIGURED = "MISCONFIGURED"
    OTHER = "OTHER"


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay: float = 0.0


def classify_error(exc: Exception) -> ErrorKind:
    """Map an exception raised by the Gemini SDK to a failure kind."""
    if isinstance(exc, google_exceptions.ServiceUnavailable):
        return ErrorKind.OVERLOADED
    if getattr(exc, "code", None) == SERVICE_UNAVAILABLE or getattr(exc, "status", None) == SERVICE_UNAVAILABLE:
        return ErrorKind.OVERLOADED
    if isinstance(exc, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
        return ErrorKind.MISCONFIGURED

    error_msg = str(exc).lower()
    if "api key" in error_msg or "api_key" in error_msg:
        return ErrorKind.MISCONFIGURED
    return ErrorKind.OTHER


def retry_decision(
    attempt: int,
    kind: ErrorKind,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BACKOFF_SECONDS,
) -> RetryDecision:
    """
    Decide what to do after attempt number ``attempt`` (1-based) failed.

    Only overloads are retried, with a linear backoff of
    ``base_delay * attempt`` seconds, until ``max_attempts`` have been made.
    """
    if kind is not ErrorKind.OVERLOADED or attempt >= max_attempts:
        return RetryDecision(retry=False)
    return RetryDecision(retry=True, delay=base_delay * attempt)


class GeminiClient:
    """Text generation through Google Gemini with retry on overload."""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        model: Optional[Any] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = (api_key or "").strip()
        self.model_name = model_name
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._model = model

    def _get_model(self):
        if self._model is not None:
            return self._model
        if not self.api_key:
            raise ServiceMisconfigured("GEMINI_API_KEY is not set")

        import google.generativeai as genai

        genai.configure(api_key=self.api_key)
        self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def generate(self, prompt: str) -> str:
        """Return the raw response text for ``prompt``."""
        model = self._get_model()
        attempt = 0
        while True:
            attempt += 1
            try:
                response = model.generate_content(prompt)
                return response.text.strip()
            except Exception as e:
                kind = classify_error(e)
                decision = retry_decision(attempt, kind, self.max_attempts, self.backoff_seconds)
                if decision.retry:
                    logger.warning(
                        "Gemini overloaded on attempt %d/%d, retrying in %.1fs",
                        attempt, self.max_attempts, decision.delay
                    )
                    self._sleep(decision.delay)
                    continue

                if kind is ErrorKind.OVERLOADED:
                    logger.error("Gemini still overloaded after %d attempts", attempt)
                    raise ServiceOverloaded(str(e)) from e
                if kind is ErrorKind.MISCONFIGURED:
                    logger.error("Gemini rejected the configured credentials")
                    raise ServiceMisconfigured(str(e)) from e
                logger.exception("Gemini generation failed")
                raise GenerationFailed(str(e)) from e
