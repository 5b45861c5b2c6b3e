import pytest
import time
from src.ragcrawler.circuit_breaker import CircuitBreaker, CircuitBreakerRegistry, CircuitState

class TestCircuitBreaker:
    def test_initial_state(self):
        cb = CircuitBreaker()
        assert cb.state == CircuitState.CLOSED
        assert cb.allow_request() is True
        
    def test_failure_threshold(self):
        cb = CircuitBreaker(failure_threshold=2)
        
        # First failure
        cb.record_failure()
        assert cb.state == CircuitState.CLOSED
        assert cb.allow_request() is True
        
        # Second failure -> OPEN
        cb.record_failure()
        assert cb.state == CircuitState.OPEN
        assert cb.allow_request() is False

    def test_success_resets_failures(self):
        cb = CircuitBreaker(failure_threshold=2)
        cb.record_failure()
        cb.record_success()
        assert cb.failures == 0

        cb.record_failure()
        assert cb.state == CircuitState.CLOSED
        
    def test_recovery(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0.1)
        
        # Fail to open
        cb.record_failure()
        assert cb.state == CircuitState.OPEN
        
        # Wait for recovery
        time.sleep(0.2)
        
        # Should be HALF_OPEN
        assert cb.state == CircuitState.HALF_OPEN
        assert cb.allow_request() is True
        
        # Success -> CLOSED
        cb.record_success()
        assert cb.state == CircuitState.CLOSED
        
    def test_half_open_failure(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0.1)
        
        # Fail to open
        for _ in range(3):
            cb.record_failure()
        time.sleep(0.2)
        assert cb.state == CircuitState.HALF_OPEN
        
        # A failed trial request reopens immediately
        cb.record_failure()
        assert cb.state == CircuitState.OPEN

    def test_half_open_allows_single_trial(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0.05)
        cb.record_failure()
        time.sleep(0.1)

        # Concurrent callers: only the first gets through
        assert [cb.allow_request() for _ in range(3)] == [True, False, False]
        assert cb.state == CircuitState.HALF_OPEN

        cb.record_success()
        assert cb.allow_request() is True
        assert cb.allow_request() is True

    def test_released_trial_can_be_retaken(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0.05)
        cb.record_failure()
        time.sleep(0.1)

        assert cb.allow_request() is True
        cb.release_trial()
        assert cb.allow_request() is True
        assert cb.allow_request() is False

class TestCircuitBreakerRegistry:
    def test_one_breaker_per_host(self):
        registry = CircuitBreakerRegistry(failure_threshold=1)
        a = registry.for_url("https://Help.Test/a")
        b = registry.for_url("https://help.test/b?x=1")
        c = registry.for_url("https://other.test/")
        assert a is b
        assert a is not c

    def test_open_hosts(self):
        registry = CircuitBreakerRegistry(failure_threshold=1)
        registry.get_breaker("help.test").record_failure()
        registry.get_breaker("other.test")
        assert registry.open_hosts() == ["help.test"]
