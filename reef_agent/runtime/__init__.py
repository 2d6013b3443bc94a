"""Runtime error taxonomy and recovery helpers."""

from reef_agent.runtime.recovery import (
    AuthorizationError,
    ErrorClass,
    PaymentError,
    RateLimitBackoff,
    RateLimitError,
    ReefAgentError,
    ReefAPIError,
    RegistrationError,
    classify_error,
)

__all__ = [
    "AuthorizationError",
    "ErrorClass",
    "PaymentError",
    "RateLimitBackoff",
    "RateLimitError",
    "ReefAPIError",
    "ReefAgentError",
    "RegistrationError",
    "classify_error",
]
