"""Reply suggestion API client."""

from datetime import datetime, timedelta
from enum import Enum
from threading import Lock
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config.settings import settings
from src.models.email import ReplyIntent
from src.utils.logging import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class SuggestionAPIError(Exception):
    """Suggestion API answered with an error status."""

    pass


class SuggestionConnectionError(Exception):
    """Suggestion API unreachable or timed out."""

    pass


class SuggestionCircuitOpenError(Exception):
    """Circuit breaker is open, rejecting requests."""

    pass


class CircuitBreaker:
    """
    Thread-safe circuit breaker.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Failure threshold exceeded, requests rejected
    - HALF_OPEN: Testing if service recovered, limited requests allowed
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout_seconds: int = 60,
        half_open_max_calls: int = 1,
    ) -> None:
        """Initialize circuit breaker."""
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.half_open_max_calls = half_open_max_calls

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[datetime] = None
        self._half_open_calls = 0
        self._lock = Lock()

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        with self._lock:
            return self._state

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt recovery."""
        if self._last_failure_time is None:
            return False

        elapsed = datetime.now() - self._last_failure_time
        return elapsed > timedelta(seconds=self.timeout_seconds)

    def _transition_state(self, new_state: CircuitState, reason: str) -> None:
        """Transition to new state with logging."""
        old_state = self._state
        self._state = new_state

        logger.warning(
            "Circuit breaker state transition",
            old_state=old_state.value,
            new_state=new_state.value,
            reason=reason,
            failure_count=self._failure_count,
        )

    def check(self) -> None:
        """
        Let a call through or reject it.

        Raises:
            SuggestionCircuitOpenError: If the circuit is open, or half-open
                with its test calls used up
        """
        with self._lock:
            if self._state == CircuitState.OPEN and self._should_attempt_reset():
                self._transition_state(
                    CircuitState.HALF_OPEN, "Timeout elapsed, testing recovery"
                )
                self._half_open_calls = 0

            if self._state == CircuitState.CLOSED:
                return

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls < self.half_open_max_calls:
                    self._half_open_calls += 1
                    return
                raise SuggestionCircuitOpenError(
                    "Reply suggestions are recovering, try again shortly"
                )

            time_until_retry = self.timeout_seconds
            if self._last_failure_time:
                elapsed = (datetime.now() - self._last_failure_time).total_seconds()
                time_until_retry = max(0, self.timeout_seconds - elapsed)

            raise SuggestionCircuitOpenError(
                f"Reply suggestions unavailable, retry in {time_until_retry:.0f}s"
            )

    def record_success(self) -> None:
        """Record a successful call."""
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._transition_state(CircuitState.CLOSED, "Recovery successful")
            self._failure_count = 0
            self._last_failure_time = None

    def record_failure(self, error: Exception) -> None:
        """Record a failed call."""
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = datetime.now()

            logger.warning(
                "Circuit breaker recorded failure",
                failure_count=self._failure_count,
                threshold=self.failure_threshold,
                error_type=type(error).__name__,
            )

            if self._state == CircuitState.HALF_OPEN:
                self._transition_state(
                    CircuitState.OPEN, "Failure during recovery test"
                )
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self.failure_threshold
            ):
                self._transition_state(
                    CircuitState.OPEN,
                    f"Failure threshold reached ({self._failure_count}/{self.failure_threshold})",
                )


def _json_body(response: httpx.Response) -> dict:
    """Decode a JSON object body, empty dict for anything else."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class SuggestionService:
    """Client for the AI reply suggestion endpoint."""

    def __init__(self) -> None:
        """Initialize suggestion client with circuit breaker."""
        self.config = settings.suggestions
        self.base_url = self.config.api_base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            self.headers["Authorization"] = f"Bearer {self.config.api_key.get_secret_value()}"

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=self.config.circuit_failure_threshold,
            timeout_seconds=self.config.circuit_timeout_seconds,
        )

        logger.info("Suggestion service initialized", base_url=self.base_url)

    @retry(
        stop=stop_after_attempt(settings.suggestions.max_retries),
        wait=wait_exponential(multiplier=1, max=10),
        retry=retry_if_exception_type(SuggestionConnectionError),
        reraise=True,
    )
    async def suggest_replies(self, email_id: str, intent: ReplyIntent) -> list[str]:
        """
        Ask the suggestion API for reply drafts.

        Args:
            email_id: Email to reply to
            intent: How the reply should respond

        Returns:
            Suggested reply texts

        Raises:
            SuggestionCircuitOpenError: If the circuit breaker is open
            SuggestionConnectionError: If the API is unreachable (after retries)
            SuggestionAPIError: If the API answers with an error status
        """
        self.circuit_breaker.check()

        url = f"{self.base_url}/emails/{email_id}/suggest-reply"
        logger.info("Requesting reply suggestions", email_id=email_id, intent=intent.value)

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.post(
                    url,
                    json={"intent": intent.value},
                    headers=self.headers,
                )
        except httpx.TimeoutException as e:
            logger.error("Suggestion API timeout", email_id=email_id, error=str(e))
            error = SuggestionConnectionError("Suggestion API timeout")
            self.circuit_breaker.record_failure(error)
            raise error from e
        except httpx.HTTPError as e:
            logger.error("Suggestion API connection failed", email_id=email_id, error=str(e))
            error = SuggestionConnectionError("Suggestion API connection failed")
            self.circuit_breaker.record_failure(error)
            raise error from e

        if response.status_code >= 400:
            message = _json_body(response).get("message") or "Unknown error"

            error = SuggestionAPIError(
                f"API request failed with status {response.status_code}: {message}"
            )
            # Client errors say nothing about the service's health
            if response.status_code >= 500:
                self.circuit_breaker.record_failure(error)
            logger.error(
                "Suggestion API error",
                email_id=email_id,
                status=response.status_code,
                error=message,
            )
            raise error

        self.circuit_breaker.record_success()
        suggestions = _json_body(response).get("suggestions") or []

        logger.info("Reply suggestions received", email_id=email_id, count=len(suggestions))
        return [str(suggestion) for suggestion in suggestions]
