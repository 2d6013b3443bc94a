"""Error taxonomy, classification and rate-limit backoff for Reef sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class ReefAgentError(Exception):
    """Base exception for reef-agent."""


class ReefAPIError(ReefAgentError):
    """The Reef service returned an error response or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthorizationError(ReefAPIError):
    """The API key was rejected (401/403 or an "invalid key" message)."""


class RateLimitError(ReefAPIError):
    """The service asked us to slow down."""


class RegistrationError(ReefAgentError):
    """Registration could not complete."""


class PaymentError(RegistrationError):
    """The entry-fee payment failed or reverted on-chain."""


class ErrorClass(StrEnum):
    """How the controller reacts to a failure."""

    FATAL = "fatal"
    RATE_LIMITED = "rate_limited"
    REJECTED = "rejected"
    BEST_EFFORT = "best_effort"
    PARSE_MISS = "parse_miss"


def is_auth_message(message: str) -> bool:
    """Whether an error message denotes a definitive key rejection."""
    return any(token in message for token in ("401", "403", "Invalid", "invalid"))


def is_rate_limit_message(message: str) -> bool:
    return "rate limit" in message.lower()


def classify_error(error: Exception) -> ErrorClass:
    """Classify an exception raised during a session.

    Authorization loss, registration and payment failures end the session.
    Rate limits back off and retry. Everything else is best-effort.
    """
    if isinstance(error, RateLimitError):
        return ErrorClass.RATE_LIMITED
    if isinstance(error, (AuthorizationError, RegistrationError)):
        return ErrorClass.FATAL
    if isinstance(error, ReefAPIError):
        if error.status_code in (401, 403):
            return ErrorClass.FATAL
        if error.status_code == 429 or is_rate_limit_message(str(error)):
            return ErrorClass.RATE_LIMITED
    return ErrorClass.BEST_EFFORT


@dataclass
class RateLimitBackoff:
    """Linear backoff proportional to consecutive rate-limit hits."""

    base_delay_seconds: float = 6.0
    consecutive: int = 0

    def next_delay(self) -> float:
        """Record one more hit and return how long to wait."""
        self.consecutive += 1
        delay = self.base_delay_seconds * self.consecutive
        logger.warning(
            "[BACKOFF] Rate limited (x%s), backing off %.1fs",
            self.consecutive,
            delay,
        )
        return delay

    def reset(self) -> None:
        self.consecutive = 0
