"""HTTP client for the Reef game service."""

from __future__ import annotations

import logging
from typing import Any

import requests

from reef_agent.runtime.recovery import (
    AuthorizationError,
    RateLimitError,
    ReefAPIError,
    RegistrationError,
    is_rate_limit_message,
)

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


def _error_message(data: Any, status_code: int) -> str:
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if message:
            return str(message)
    return f"status {status_code}"


def _is_key_rejection(message: str) -> bool:
    lowered = message.lower()
    return "invalid" in lowered and ("key" in lowered or "api" in lowered or "auth" in lowered)


class ReefClient:
    """Thin synchronous wrapper around the Reef REST endpoints.

    ``success: false`` payloads on a 2xx response are game-level
    rejections and are returned to the caller unchanged. Transport and
    HTTP errors are raised as ReefAPIError subclasses.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        authenticated: bool = False,
        label: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if authenticated:
            if not self.api_key:
                raise AuthorizationError("No API key configured")
            headers[API_KEY_HEADER] = self.api_key

        url = f"{self._base_url}{path}"
        label = label or f"{method} {path}"
        try:
            response = self._session.request(
                method,
                url,
                json=json_body,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ReefAPIError(f"{label} failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = f"{label} failed: {_error_message(data, response.status_code)}"
            status = response.status_code
            if status in (401, 403) or (authenticated and _is_key_rejection(message)):
                raise AuthorizationError(message, status_code=status)
            if status == 429 or is_rate_limit_message(message):
                raise RateLimitError(message, status_code=status)
            raise ReefAPIError(message, status_code=status)

        if not isinstance(data, dict):
            raise ReefAPIError(f"{label} returned a non-object body", status_code=response.status_code)
        return data

    def get(self, path: str) -> dict[str, Any]:
        """GET an unauthenticated endpoint."""
        return self._request("GET", path)

    def action(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST a game action.

        Args:
            body: ``{"action": verb, "target"?: str, "params"?: dict}``.

        Returns:
            The decoded response, including ``success: false`` rejections.
        """
        return self._request(
            "POST",
            "/action",
            json_body=body,
            authenticated=True,
            label=f"action {body.get('action')}",
        )

    def entry_status(self, wallet: str) -> dict[str, Any] | None:
        """Look up whether a wallet has paid the entry fee.

        Lookup failures are treated as "unknown" and return None.
        """
        try:
            return self.get(f"/enter/status/{wallet}")
        except ReefAPIError as e:
            logger.warning("[REGISTER] Entry status lookup failed: %s", e)
            return None

    def season(self) -> dict[str, Any]:
        return self.get("/world/season")

    def enter(self, wallet: str, name: str) -> str:
        """Register the wallet under an agent name and return the API key.

        Raises:
            RegistrationError: If the service refuses or returns no key.
        """
        try:
            data = self._request("POST", "/enter", json_body={"wallet": wallet, "name": name}, label="registration")
        except ReefAPIError as e:
            raise RegistrationError(str(e)) from e
        api_key = data.get("apiKey")
        if not api_key:
            raise RegistrationError(f"registration failed: {_error_message(data, 200)}")
        return str(api_key)
