"""Registration flow: validate a saved key, or pay the entry fee and register."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

from reef_agent.environment.client import ReefClient
from reef_agent.environment.wallet import EntryFeeWallet, parse_entry_fee, wallet_address
from reef_agent.interfaces.collaborators import ActivityKind, ActivityLogger
from reef_agent.memory.persistence import AgentRecordStore
from reef_agent.models.records import PersistedAgentRecord
from reef_agent.runtime.recovery import (
    AuthorizationError,
    ReefAPIError,
    RegistrationError,
    is_auth_message,
)

logger = logging.getLogger(__name__)

PAID_FLAGS = ("paid", "entered", "registered")


class RegistrationState(StrEnum):
    """Where the agent stands with the game service."""

    UNREGISTERED = "unregistered"
    PENDING_PAYMENT = "pending_payment"
    REGISTERED = "registered"


class RegistrationFlow:
    """Ensure the agent holds a working API key.

    A stored key is validated with a cheap ``status`` action. A definitive
    key rejection falls through to re-registration; any other failure means
    the service is unavailable and is raised as fatal.
    """

    def __init__(
        self,
        client: ReefClient,
        store: AgentRecordStore,
        activity: ActivityLogger,
        agent_name: str,
        private_key: str | None,
        wallet_factory: Callable[[str], EntryFeeWallet],
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._activity = activity
        self._agent_name = agent_name
        self._private_key = private_key
        self._wallet_factory = wallet_factory
        self._clock = clock or (lambda: datetime.now(UTC))
        self.state = RegistrationState.UNREGISTERED

    def ensure_registered(self) -> PersistedAgentRecord:
        """Return a record whose API key the service accepts.

        Raises:
            RegistrationError: If validation, payment or registration fails.
        """
        existing = self._store.load()
        if existing is not None and existing.has_key:
            if self._key_is_valid(existing):
                self.state = RegistrationState.REGISTERED
                return existing

        return self._register(existing)

    def _key_is_valid(self, record: PersistedAgentRecord) -> bool:
        self._activity.log(
            ActivityKind.STEP,
            f'already registered as "{record.agent_name}", testing API key...',
        )
        self._client.api_key = record.api_key
        try:
            self._client.action({"action": "status"})
        except AuthorizationError as e:
            self._activity.log(ActivityKind.THOUGHT, f"API key rejected ({e}). re-registering...")
            return False
        except ReefAPIError as e:
            if is_auth_message(str(e)):
                self._activity.log(ActivityKind.THOUGHT, f"API key rejected ({e}). re-registering...")
                return False
            raise RegistrationError(f"reef API error: {e}") from e
        self._activity.log(ActivityKind.STEP, "API key valid.")
        return True

    def _register(self, existing: PersistedAgentRecord | None) -> PersistedAgentRecord:
        if not self._private_key:
            raise RegistrationError("no BURNER_PRIVATE_KEY or PRIVATE_KEY in environment")

        try:
            address = wallet_address(self._private_key)
        except ValueError as e:
            raise RegistrationError(f"invalid private key: {e}") from e
        self._activity.log(ActivityKind.STEP, f"checking entry status for {address[:8]}...")
        entry = self._client.entry_status(address) or {}
        already_paid = any(entry.get(flag) is True for flag in PAID_FLAGS)

        if already_paid:
            self._activity.log(ActivityKind.STEP, "entry fee already paid.")
        else:
            self.state = RegistrationState.PENDING_PAYMENT
            self._pay_entry_fee()

        self._activity.log(ActivityKind.STEP, f'registering as "{self._agent_name}"...')
        api_key = self._client.enter(address, self._agent_name)

        record = PersistedAgentRecord(
            api_key=api_key,
            agent_name=self._agent_name,
            wallet_address=address,
            registered_at=self._clock().isoformat(),
        )
        if existing is not None and existing.wallet_address == address:
            record.last_status = existing.last_status
            record.known_gear = existing.known_gear
            record.faction_joined = existing.faction_joined
            record.lifetime = existing.lifetime

        self._store.save(record)
        self._client.api_key = api_key
        self.state = RegistrationState.REGISTERED
        self._activity.log(ActivityKind.ACTION, "registered! API key saved.")
        return record

    def _pay_entry_fee(self) -> None:
        self._activity.log(ActivityKind.STEP, "fetching current season entry fee...")
        try:
            season = self._client.season()
        except ReefAPIError as e:
            raise RegistrationError(f"could not fetch season: {e}") from e
        fee = parse_entry_fee(season)

        self._activity.log(ActivityKind.ACTION, f"paying entry fee: {fee} MON...")
        wallet = self._wallet_factory(self._private_key or "")
        tx_hash = wallet.pay_entry_fee(fee)
        self._activity.log(ActivityKind.ACTION, f"entry fee paid! tx {tx_hash}")
