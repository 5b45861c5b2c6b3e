"""
Circuit breaker pattern for hosts that keep failing after retries.
"""
import time
from enum import Enum
from typing import Dict
from urllib.parse import urlsplit

class CircuitState(Enum):
    CLOSED = "CLOSED"      # Normal operation
    OPEN = "OPEN"          # Host short-circuited, fetches fail fast
    HALF_OPEN = "HALF_OPEN" # One trial fetch allowed

class CircuitBreaker:
    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 60.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self._failures = 0
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        # Set while the single HALF_OPEN trial request is outstanding
        self._trial_in_flight = False

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and time.monotonic() - self._opened_at > self.recovery_timeout:
            self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        state = self.state
        if state == CircuitState.OPEN:
            return False
        if state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
        return True

    def release_trial(self):
        """The trial request ended without saying anything about the host."""
        self._trial_in_flight = False

    def record_success(self):
        """The host answered; a trial fetch closes the circuit again."""
        self._failures = 0
        self._trial_in_flight = False
        self._state = CircuitState.CLOSED

    def record_failure(self):
        """A fetch to the host failed terminally (retries exhausted)."""
        self._failures += 1
        self._trial_in_flight = False
        if self._state == CircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = time.monotonic()

class CircuitBreakerRegistry:
    """One breaker per host, created on first use."""
    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 60.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get_breaker(self, host: str) -> CircuitBreaker:
        host = host.lower()
        if host not in self._breakers:
            self._breakers[host] = CircuitBreaker(
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout
            )
        return self._breakers[host]

    def for_url(self, url: str) -> CircuitBreaker:
        return self.get_breaker(urlsplit(url).netloc)

    def open_hosts(self) -> list:
        return [host for host, breaker in self._breakers.items() if breaker.state == CircuitState.OPEN]
