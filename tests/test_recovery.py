"""Tests for error classification and rate-limit backoff."""

from __future__ import annotations

import pytest

from reef_agent.runtime.recovery import (
    AuthorizationError,
    ErrorClass,
    PaymentError,
    RateLimitBackoff,
    RateLimitError,
    ReefAPIError,
    RegistrationError,
    classify_error,
    is_auth_message,
)


class TestClassifyError:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (RateLimitError("slow down", status_code=429), ErrorClass.RATE_LIMITED),
            (AuthorizationError("bad key", status_code=401), ErrorClass.FATAL),
            (RegistrationError("no key"), ErrorClass.FATAL),
            (PaymentError("reverted"), ErrorClass.FATAL),
            (ReefAPIError("forbidden", status_code=403), ErrorClass.FATAL),
            (ReefAPIError("busy", status_code=429), ErrorClass.RATE_LIMITED),
            (ReefAPIError("Rate limit hit"), ErrorClass.RATE_LIMITED),
            (ReefAPIError("boom", status_code=500), ErrorClass.BEST_EFFORT),
            (ValueError("odd payload"), ErrorClass.BEST_EFFORT),
        ],
    )
    def test_classification(self, error: Exception, expected: ErrorClass) -> None:
        assert classify_error(error) == expected

    def test_auth_messages(self) -> None:
        assert is_auth_message("action status failed: status 401")
        assert is_auth_message("Invalid API key")
        assert not is_auth_message("action status failed: status 500")


class TestRateLimitBackoff:
    def test_grows_linearly_and_resets(self) -> None:
        backoff = RateLimitBackoff(base_delay_seconds=6.0)

        assert backoff.next_delay() == 6.0
        assert backoff.next_delay() == 12.0
        assert backoff.next_delay() == 18.0

        backoff.reset()

        assert backoff.consecutive == 0
        assert backoff.next_delay() == 6.0
