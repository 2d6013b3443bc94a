"""Session controller for the Reef agent.

This module provides the SessionController that drives one bounded
session against the Reef service:

- Registration (validate the stored key, or pay and register)
- Survey (look + status, dedicated inventory call)
- Escape from an unknown zone
- Preparation at the hub
- Decision loop: generate → guard → pick → act → merge → refresh
- Final status, record update and a structured result

Every outbound call is followed by the configured inter-call delay and no
two calls are ever in flight. ``run`` never raises: every outcome,
including a failed registration, is reported as a SessionResult.

Example:
    >>> controller = SessionController(client, registration, store, emotions)
    >>> result = controller.run(SessionParams(mode=SessionMode.GRIND))
    >>> print(result.summary)
"""

from __future__ import annotations

import json
import logging
import math
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from reef_agent.core.extraction import (
    RejectionKind,
    classify_rejection,
    detect_outcomes,
    extract_game_state,
    merge_action_result,
    parse_quests,
)
from reef_agent.core.report import (
    REGISTRATION_FAILURE_REFLECTION,
    STARTUP_FAILURE_REFLECTION,
    SessionOutcome,
    build_reflection,
    build_summary,
)
from reef_agent.environment.client import ReefClient
from reef_agent.environment.registration import RegistrationFlow
from reef_agent.interfaces.collaborators import (
    ActivityKind,
    ActivityLogger,
    CancellationSignal,
    EmotionSource,
    LoggingActivityLogger,
    NeverCancelled,
)
from reef_agent.memory.persistence import AgentRecordStore, PersistenceError
from reef_agent.models.actions import ActionCandidate
from reef_agent.models.game_state import CombatState, GameState, QuestStatus
from reef_agent.models.profile import BehaviorProfile
from reef_agent.models.records import KnownGear, LastStatus, PersistedAgentRecord
from reef_agent.models.session import SessionParams, SessionResult, SessionStats
from reef_agent.runtime.recovery import (
    AuthorizationError,
    ErrorClass,
    RateLimitBackoff,
    ReefAgentError,
    ReefAPIError,
    classify_error,
)
from reef_agent.strategy.candidates import (
    CandidateGenerator,
    apply_loop_guard,
    pick_action,
    to_request_body,
)
from reef_agent.strategy.catalog import DEFAULT_CATALOG, GameCatalog
from reef_agent.strategy.economy import target_farm_zone
from reef_agent.strategy.messages import pick_broadcast_message
from reef_agent.strategy.preparation import PreparationOutcome, PreparationPlanner
from reef_agent.strategy.profile import describe_emotions, emotion_to_profile

logger = logging.getLogger(__name__)

# Verbs after which the surroundings are re-read.
REFRESH_ACTIONS = frozenset({"move", "attack", "fight", "flee", "buy", "sell", "use", "faction"})
RAW_LOG_LIMIT = 800


class SessionPhase(StrEnum):
    """Phases a session moves through, in order."""

    REGISTERING = "registering"
    SURVEYING = "surveying"
    ESCAPING = "escaping"
    PREPARING = "preparing"
    LOOPING = "looping"
    FINISHED = "finished"


@dataclass
class ControllerConfig:
    """Timing and bookkeeping settings for the session controller.

    Attributes:
        action_delay_seconds: Pause after every outbound call.
        rest_cooldown_seconds: Minimum spacing between two rests.
        broadcast_cooldown_seconds: Minimum spacing between two broadcasts.
        refresh_every: Re-read surroundings after this many successful actions.
        status_refresh_every: Also re-read status after this many.
        max_survey_attempts: Attempts at the opening look+status on rate limits.
        low_energy_floor: Energy below which the session ends if rest is unavailable.
        max_iterations_factor: Loop iterations allowed per unit of action budget.
        inbox_preview: Messages logged from an inbox check.
        max_trade_accepts: Pending trades accepted per trade check.
    """

    action_delay_seconds: float = 6.0
    rest_cooldown_seconds: float = 61.0
    broadcast_cooldown_seconds: float = 61.0
    refresh_every: int = 4
    status_refresh_every: int = 8
    max_survey_attempts: int = 3
    low_energy_floor: int = 5
    max_iterations_factor: int = 3
    inbox_preview: int = 3
    max_trade_accepts: int = 2


class _AccessLost(ReefAgentError):
    """A call failed in a way that ends the session (the key stopped working)."""


def _raise_if_fatal(error: ReefAPIError) -> None:
    if classify_error(error) == ErrorClass.FATAL:
        raise _AccessLost(str(error)) from error


def _raw(payload: Any) -> str:
    return json.dumps(payload, default=str)[:RAW_LOG_LIMIT]


class SessionController:
    """Drive one Reef session from registration to the final report.

    Attributes:
        phase: Current session phase.
    """

    def __init__(
        self,
        client: ReefClient,
        registration: RegistrationFlow,
        store: AgentRecordStore,
        emotions: EmotionSource,
        activity: ActivityLogger | None = None,
        cancellation: CancellationSignal | None = None,
        catalog: GameCatalog = DEFAULT_CATALOG,
        generator: CandidateGenerator | None = None,
        config: ControllerConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._registration = registration
        self._store = store
        self._emotions = emotions
        self._activity = activity or LoggingActivityLogger()
        self._cancellation = cancellation or NeverCancelled()
        self._catalog = catalog
        self._rng = rng or random.Random()
        self._generator = generator or CandidateGenerator(catalog=catalog, rng=self._rng)
        self._config = config or ControllerConfig()
        self._sleep = sleep
        self._clock = clock
        self._planner = PreparationPlanner(client, self._pause, self._activity, self._cancellation, catalog)
        self._backoff = RateLimitBackoff(base_delay_seconds=self._config.action_delay_seconds)

        self.phase = SessionPhase.REGISTERING
        self._look: dict[str, Any] = {}
        self._status: dict[str, Any] = {}
        self._state = GameState()

    @property
    def state(self) -> GameState:
        return self._state

    # -- plumbing -------------------------------------------------------------

    def _log(self, kind: ActivityKind, message: str, data: dict[str, Any] | None = None) -> None:
        self._activity.log(kind, message, data)

    def _pause(self) -> None:
        self._sleep(self._config.action_delay_seconds)

    def _call(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._client.action(body)

    def _rebuild_state(self) -> None:
        """Re-extract from the latest payloads, carrying session-only knowledge over."""
        previous = self._state
        state = extract_game_state(self._look, self._status, self._catalog)
        state.quests = previous.quests
        state.active_quest = previous.active_quest
        has_inventory = any(isinstance(p.get("inventory"), list) for p in (self._look, self._status))
        if not has_inventory and previous.inventory:
            state.inventory = previous.inventory
            state.equipment.sync_from_inventory(state.inventory)
        self._state = state

    def _age_status(self, newer_agent: Any = None) -> None:
        """Demote the cached status below a newer payload.

        Agent fields from the newer payload replace the cached ones, and the
        status's own combat evidence (``inCombat`` and its narrative) is
        dropped so only the newer payload can say whether we are fighting.
        """
        status = {k: v for k, v in self._status.items() if k != "narrative"}
        agent = {k: v for k, v in (status.get("agent") or {}).items() if k != "inCombat"}
        if isinstance(newer_agent, dict):
            agent.update(newer_agent)
        status["agent"] = agent
        self._status = status

    def _refresh(self, *, status: bool = False) -> None:
        """Look (and optionally status) again, then rebuild state."""
        self._look = self._call({"action": "look"})
        logger.debug("RAW look: %s", _raw(self._look))
        if status:
            self._pause()
            self._status = self._call({"action": "status"})
        else:
            self._age_status(self._look.get("agent"))
        self._rebuild_state()

    def _try_refresh(self, *, status: bool = False) -> None:
        try:
            self._refresh(status=status)
        except ReefAPIError as e:
            _raise_if_fatal(e)
            logger.debug("Context refresh failed, keeping stale state: %s", e)

    # -- entry point ----------------------------------------------------------

    def run(self, params: SessionParams) -> SessionResult:
        """Run one session. Never raises."""
        try:
            return self._run(params)
        except Exception as e:
            logger.exception("[SESSION] Unexpected failure: %s", e)
            self.phase = SessionPhase.FINISHED
            return SessionResult(
                success=False,
                summary=f"reef session crashed: {e}",
                reflection=STARTUP_FAILURE_REFLECTION,
            )

    def _run(self, params: SessionParams) -> SessionResult:
        emotions = self._emotions.emotions()
        profile = emotion_to_profile(emotions)
        self._log(ActivityKind.STEP, "loading emotional state...")
        self._log(ActivityKind.THOUGHT, f"feeling: {describe_emotions(emotions)}")
        self._log(ActivityKind.THOUGHT, f"profile: {profile.describe()}")
        target = f" | target: {params.target_zone}" if params.target_zone else ""
        self._log(ActivityKind.THOUGHT, f"mode: {params.mode} | max actions: {params.max_actions}{target}")

        self.phase = SessionPhase.REGISTERING
        self._log(ActivityKind.STEP, "checking reef registration...")
        try:
            record = self._registration.ensure_registered()
        except ReefAgentError as e:
            self._log(ActivityKind.ERROR, f"registration failed: {e}")
            self.phase = SessionPhase.FINISHED
            return SessionResult(
                success=False,
                summary=f"couldn't enter the reef: {e}",
                reflection=REGISTRATION_FAILURE_REFLECTION,
            )
        self._client.api_key = record.api_key
        self._pause()

        self.phase = SessionPhase.SURVEYING
        failure = self._survey(record)
        if failure is not None:
            return failure

        session = _SessionTally()
        try:
            if self._state.needs_escape and not self._cancellation.cancelled:
                self.phase = SessionPhase.ESCAPING
                self._escape()

            self._log(ActivityKind.ACTION, f"positioned: {self._state.summary()}")
            self._log_gear()

            optimal_zone = params.target_zone or target_farm_zone(self._state.level, self._catalog)
            needs_prep = self._planner.should_run(self._state)
            self._log(ActivityKind.THOUGHT, f"optimal farm zone: {optimal_zone} | needs prep: {needs_prep}")
            session.optimal_zone = optimal_zone

            if needs_prep and not self._cancellation.cancelled:
                self.phase = SessionPhase.PREPARING
                self._prepare(record, profile, session)

            self.phase = SessionPhase.LOOPING
            session.start_xp = self._state.xp
            session.start_shells = self._state.shells
            self._loop(params, profile, session)
        except (_AccessLost, AuthorizationError) as e:
            self._log(ActivityKind.ERROR, f"lost API access ({e}). ending session.")
            record.api_key = ""
            session.access_lost = True

        return self._finish(record, params, session)

    # -- phases ---------------------------------------------------------------

    def _survey(self, record: PersistedAgentRecord) -> SessionResult | None:
        self._log(ActivityKind.STEP, "surveying the reef...")
        attempts = self._config.max_survey_attempts
        for attempt in range(1, attempts + 1):
            try:
                self._look = self._call({"action": "look"})
                logger.debug("RAW look: %s", _raw(self._look))
                self._pause()
                self._status = self._call({"action": "status"})
                logger.debug("RAW status: %s", _raw(self._status))
                self._pause()
                break
            except ReefAPIError as e:
                if classify_error(e) == ErrorClass.RATE_LIMITED and attempt < attempts:
                    self._log(ActivityKind.THOUGHT, f"rate limited on attempt {attempt}, waiting...")
                    self._pause()
                    continue
                return self._startup_failure(record, e)

        self._state = extract_game_state(self._look, self._status, self._catalog)
        self._log(ActivityKind.ACTION, f"in {self._state.summary()}")
        if self._state.creatures:
            self._log(ActivityKind.STEP, f"creatures nearby: {', '.join(self._state.creatures)}")
        if self._state.resources:
            self._log(ActivityKind.STEP, f"resources: {', '.join(self._state.resources)}")
        if self._state.agents:
            self._log(ActivityKind.STEP, f"other agents: {', '.join(self._state.agents)}")

        try:
            inventory = self._call({"action": "inventory"})
            logger.debug("RAW inventory: %s", _raw(inventory))
            raw = inventory.get("inventory") or inventory.get("items") or []
            if isinstance(raw, list) and raw:
                self._status = {**self._status, "inventory": raw}
                self._rebuild_state()
        except ReefAPIError as e:
            if classify_error(e) == ErrorClass.FATAL:
                return self._startup_failure(record, e)
            logger.debug("Inventory call failed: %s", e)
        self._pause()
        return None

    def _startup_failure(self, record: PersistedAgentRecord, error: ReefAPIError) -> SessionResult:
        if classify_error(error) == ErrorClass.FATAL:
            self._log(ActivityKind.THOUGHT, "API key expired. clearing saved state for next attempt.")
            record.api_key = ""
            self._save(record)
        self._log(ActivityKind.ERROR, f"couldn't read game state: {error}")
        self.phase = SessionPhase.FINISHED
        return SessionResult(
            success=False,
            summary=f"reef session failed at startup: {error}",
            reflection=STARTUP_FAILURE_REFLECTION,
        )

    def _escape(self) -> None:
        """Try each escape target with ``move``, then ``travel``, then ``explore``."""
        self._log(ActivityKind.THOUGHT, "stuck in unknown zone, attempting to escape...")
        for verb in ("move", "travel"):
            for target in self._catalog.escape_targets:
                if self._cancellation.cancelled:
                    return
                if self._escape_attempt({"action": verb, "target": target}, f"{verb} → {target}"):
                    self._log(ActivityKind.ACTION, f"escaped to {self._state.zone}!")
                    return

        if self._cancellation.cancelled:
            return
        if self._escape_attempt({"action": "explore"}, "explore", require_exits=False):
            self._log(ActivityKind.ACTION, f"escaped to {self._state.zone}!")
            return

        self._log(ActivityKind.THOUGHT, "still in unknown zone after escape attempts.")
        self._log(ActivityKind.THOUGHT, f"full state: {_raw(self._state.model_dump(mode='json'))}")

    def _escape_attempt(self, body: dict[str, Any], label: str, require_exits: bool = True) -> bool:
        self._log(ActivityKind.ACTION, f"trying: {label}")
        try:
            result = self._call(body)
            logger.debug("RAW %s result: %s", label, _raw(result))
            self._pause()
            self._refresh(status=True)
            self._pause()
        except ReefAPIError as e:
            _raise_if_fatal(e)
            self._log(ActivityKind.THOUGHT, f"{label} failed: {e}")
            self._pause()
            return False
        if require_exits:
            return not self._state.needs_escape
        return self._state.zone != "unknown"

    def _prepare(self, record: PersistedAgentRecord, profile: BehaviorProfile, session: _SessionTally) -> None:
        hub = self._catalog.hub_zone
        if self._state.zone != hub:
            if hub not in self._state.connected_zones:
                self._log(ActivityKind.THOUGHT, f"{hub} not directly connected, will route during main loop")
                return
            self._log(ActivityKind.ACTION, f"moving to {hub} for prep...")
            try:
                self._call({"action": "move", "target": hub})
                session.actions += 1
                self._pause()
                self._refresh(status=True)
                self._pause()
            except ReefAPIError as e:
                _raise_if_fatal(e)
                self._log(ActivityKind.ERROR, f"move to {hub} failed: {e}")
                self._pause()

        if self._state.zone != hub or self._cancellation.cancelled:
            return

        last_zone = record.last_status.zone if record.last_status else None
        outcome = self._planner.run(
            self._state,
            profile,
            faction_already_joined=bool(record.faction_joined),
            last_zone=last_zone,
        )
        session.apply_prep(outcome)
        try:
            self._status = self._call({"action": "status"})
            self._pause()
            self._refresh()
            self._pause()
        except ReefAPIError as e:
            _raise_if_fatal(e)
            logger.debug("Post-prep refresh failed: %s", e)

    # -- decision loop --------------------------------------------------------

    def _loop(self, params: SessionParams, profile: BehaviorProfile, session: _SessionTally) -> None:
        cfg = self._config
        last_rest = -math.inf
        last_broadcast = -math.inf
        budget_used = 0
        iterations = 0
        max_iterations = params.max_actions * cfg.max_iterations_factor

        while budget_used < params.max_actions and iterations < max_iterations:
            iterations += 1
            if self._cancellation.cancelled:
                self._log(ActivityKind.ACTION, "kill switch activated, ending session.")
                session.cancelled = True
                break

            now = self._clock()
            rest_ready = now - last_rest >= cfg.rest_cooldown_seconds
            broadcast_ready = now - last_broadcast >= cfg.broadcast_cooldown_seconds
            if self._state.energy < cfg.low_energy_floor and not rest_ready:
                self._log(ActivityKind.THOUGHT, "energy depleted and rest on cooldown. ending session.")
                break

            candidates = [
                c
                for c in self._generator.generate(self._state, profile, params.mode, params.target_zone)
                if (c.action != "rest" or rest_ready) and (c.action != "broadcast" or broadcast_ready)
            ]
            if not candidates:
                self._log(ActivityKind.THOUGHT, "no valid actions available. ending session.")
                break

            guarded = apply_loop_guard(candidates, session.history, self._generator.config)
            if guarded:
                self._log(ActivityKind.THOUGHT, f'loop guard: "{guarded}" repeated, penalizing')
            chosen, _ = pick_action(candidates, self._generator.config.top_n)
            body = self._body_for(chosen)

            message = f": \"{body['message']}\"" if "message" in body else ""
            self._log(
                ActivityKind.ACTION,
                f"{chosen.action}{' → ' + chosen.target if chosen.target else ''}{message}",
                chosen.to_log(),
            )
            try:
                result = self._call(body)
            except ReefAPIError as e:
                _raise_if_fatal(e)
                if classify_error(e) == ErrorClass.RATE_LIMITED:
                    self._sleep(self._backoff.next_delay())
                    continue
                self._log(ActivityKind.ERROR, f"action failed: {e}")
                self._backoff.reset()
                self._pause()
                continue
            logger.debug("RAW result: %s", _raw(result))

            if result.get("success") is False:
                self._handle_rejection(result)
                continue

            self._backoff.reset()
            budget_used += 1
            session.actions += 1
            merge_action_result(self._state, result, self._catalog)
            self._age_status(result.get("agent"))
            self._bookkeep(chosen, result)

            if chosen.action == "rest":
                last_rest = self._clock()
            if chosen.action == "broadcast":
                last_broadcast = self._clock()
            session.history.append(chosen.key)
            self._record_outcomes(result, session)
            self._pause()

            if session.actions % cfg.refresh_every == 0 or chosen.action in REFRESH_ACTIONS:
                self._try_refresh(status=session.actions % cfg.status_refresh_every == 0)
                self._pause()

    def _body_for(self, chosen: ActionCandidate) -> dict[str, Any]:
        message = None
        if chosen.action == "broadcast":
            message = pick_broadcast_message(
                self._emotions.dominant(), self._state.zone, self._state.level, self._rng
            )
        return to_request_body(chosen, message)

    def _handle_rejection(self, result: dict[str, Any]) -> None:
        """Fold a ``success: false`` response into state.

        The rejection's own narrative is authoritative for combat: when it
        says combat is over or ongoing, that overrides whatever a refresh
        with an older status payload would infer.
        """
        reason = result.get("message") or result.get("error") or "none"
        self._log(ActivityKind.THOUGHT, f"action REJECTED by API. msg: {reason}")
        agent = result.get("agent")
        if isinstance(agent, dict):
            self._state.apply_agent_fields(agent, include_location=False)
            self._age_status({k: v for k, v in agent.items() if k != "location"})

        signal = classify_rejection(result)
        self._pause()
        if signal.kind == RejectionKind.CLEARED:
            self._log(ActivityKind.THOUGHT, "rejection says NOT in combat, clearing combat state")
            self._age_status()
            self._state.creatures = []
            self._try_refresh()
            self._state.combat = CombatState.clear()
            self._pause()
        elif signal.kind == RejectionKind.ENGAGED:
            self._state.combat = CombatState.engaged(signal.enemy)
            if signal.enemy:
                self._state.creatures = [signal.enemy]
                self._log(ActivityKind.THOUGHT, f"combat detected from rejection: enemy={signal.enemy}")
            else:
                self._log(ActivityKind.THOUGHT, "combat detected from rejection but could not identify enemy")
        else:
            self._try_refresh()
            self._pause()

    def _bookkeep(self, chosen: ActionCandidate, result: dict[str, Any]) -> None:
        """Inbox, trade and quest side effects of a successful action."""
        if chosen.action == "inbox":
            messages = result.get("messages") or result.get("inbox") or []
            if isinstance(messages, list) and messages:
                self._log(ActivityKind.STEP, f"inbox: {len(messages)} message(s)")
                for msg in messages[: self._config.inbox_preview]:
                    if not isinstance(msg, dict):
                        continue
                    sender = msg.get("from") or msg.get("sender") or "unknown"
                    text = str(msg.get("message") or msg.get("text") or msg.get("content") or "")
                    self._log(ActivityKind.STEP, f'  from {sender}: "{text[:100]}"')

        elif chosen.action == "trade" and chosen.target == "pending":
            self._accept_trades(result)

        elif chosen.action == "quest":
            state = self._state
            if chosen.target == "list":
                quests = parse_quests(result)
                if quests:
                    state.quests = quests
                    active = next((q for q in quests if q.status == QuestStatus.ACTIVE), None)
                    if active is not None:
                        state.active_quest = active.id
                    available = sum(1 for q in quests if q.status == QuestStatus.AVAILABLE)
                    self._log(ActivityKind.STEP, f"quests: {len(quests)} found ({available} available)")
            elif chosen.target == "accept" and chosen.params.get("quest"):
                state.active_quest = chosen.params["quest"]
                self._log(ActivityKind.RESULT, f"accepted quest: {state.active_quest}")
            elif chosen.target == "complete":
                state.active_quest = None
                self._log(ActivityKind.RESULT, "quest completed!")

    def _accept_trades(self, result: dict[str, Any]) -> None:
        trades = result.get("trades") or result.get("pending") or []
        if not isinstance(trades, list) or not trades:
            return
        self._log(ActivityKind.STEP, f"{len(trades)} pending trade(s)")
        for trade in trades[: self._config.max_trade_accepts]:
            if not isinstance(trade, dict):
                continue
            trade_id = trade.get("id") or trade.get("tradeId")
            offering = trade.get("offer") or trade.get("offering")
            if not trade_id or not offering:
                continue
            self._log(ActivityKind.ACTION, f"accepting trade {str(trade_id)[:8]}... (they offer: {offering})")
            try:
                self._call({"action": "trade", "params": {"accept": str(trade_id)}})
            except ReefAPIError as e:
                _raise_if_fatal(e)
                logger.debug("Trade accept failed: %s", e)
            self._pause()

    def _record_outcomes(self, result: dict[str, Any], session: _SessionTally) -> None:
        killed, died = detect_outcomes(json.dumps(result, default=str))
        if killed:
            session.kills += 1
            self._log(ActivityKind.RESULT, "creature defeated!")
        if died:
            session.deaths += 1
            self._log(ActivityKind.RESULT, "died and respawned.")
        if result.get("message"):
            self._log(ActivityKind.STEP, str(result["message"]))
        for key in ("reward", "loot"):
            if result.get(key):
                self._log(ActivityKind.RESULT, f"{key}: {json.dumps(result[key], default=str)}")
        if result.get("xp"):
            self._log(ActivityKind.RESULT, f"+{result['xp']} XP")

    # -- wrap-up --------------------------------------------------------------

    def _finish(self, record: PersistedAgentRecord, params: SessionParams, session: _SessionTally) -> SessionResult:
        self.phase = SessionPhase.FINISHED
        if not session.access_lost:
            try:
                self._status = self._call({"action": "status"})
                self._rebuild_state()
            except ReefAPIError as e:
                logger.debug("Final status failed: %s", e)

        state = self._state
        xp_gained = state.xp - session.start_xp if session.start_xp is not None else 0
        shells_gained = state.shells - session.start_shells if session.start_shells is not None else 0

        record.last_status = LastStatus(
            level=state.level,
            hp=state.hp,
            max_hp=state.max_hp,
            energy=state.energy,
            max_energy=state.max_energy,
            zone=state.zone,
            shells=state.shells,
            xp=state.xp,
            faction=state.faction,
            reputation=state.reputation,
        )
        record.known_gear = KnownGear(**state.equipment.model_dump())
        if session.faction_joined:
            record.faction_joined = True
        if session.goals is not None:
            record.session_goals = session.goals
        lifetime = record.lifetime
        lifetime.sessions += 1
        lifetime.total_actions += session.actions
        lifetime.total_xp += max(0, xp_gained)
        lifetime.total_shells += max(0, shells_gained)
        lifetime.kills += session.kills
        lifetime.deaths += session.deaths
        self._save(record)

        outcome = SessionOutcome(
            zone=state.zone,
            level=state.level,
            actions_performed=session.actions,
            kills=session.kills,
            deaths=session.deaths,
            xp_gained=xp_gained,
            shells_gained=shells_gained,
            cancelled=session.cancelled or self._cancellation.cancelled,
        )
        stats = SessionStats(
            zone=state.zone,
            level=state.level,
            hp=f"{state.hp}/{state.max_hp}",
            energy=f"{state.energy}/{state.max_energy}",
            shells=state.shells,
            xp=state.xp,
            actions_performed=session.actions,
            kills=session.kills,
            deaths=session.deaths,
            xp_gained=xp_gained,
            shells_gained=shells_gained,
            mode=params.mode,
            equipment=state.equipment.model_dump(),
            faction=state.faction,
            optimal_zone=session.optimal_zone or target_farm_zone(state.level, self._catalog),
            actions=list(session.history),
            lifetime=lifetime.model_copy(),
        )
        summary = build_summary(outcome)
        self._log(ActivityKind.RESULT, summary)
        return SessionResult(
            success=session.actions > 0,
            summary=summary,
            reflection=build_reflection(outcome),
            stats=stats,
        )

    def _save(self, record: PersistedAgentRecord) -> None:
        try:
            self._store.save(record)
        except PersistenceError as e:
            self._log(ActivityKind.ERROR, f"could not save agent record: {e}")

    def _log_gear(self) -> None:
        state = self._state
        if state.inventory:
            items = ", ".join(
                f"{i.name}{f' x{i.quantity}' if i.quantity > 1 else ''}{' [E]' if i.equipped else ''}"
                for i in state.inventory
            )
            self._log(ActivityKind.STEP, f"inventory ({len(state.inventory)}/{state.inventory_capacity}): {items}")
        gear = " | ".join(
            f"{label}:{state.equipment.get(slot) or 'none'}"
            for label, slot in (("wpn", "weapon"), ("arm", "armor"), ("acc", "accessory"))
        )
        self._log(ActivityKind.STEP, f"equipment: {gear}")


@dataclass
class _SessionTally:
    """Mutable per-session counters."""

    actions: int = 0
    kills: int = 0
    deaths: int = 0
    start_xp: int | None = None
    start_shells: int | None = None
    optimal_zone: str | None = None
    cancelled: bool = False
    access_lost: bool = False
    faction_joined: bool = False
    goals: list[str] | None = None
    history: list[str] = field(default_factory=list)

    def apply_prep(self, outcome: PreparationOutcome) -> None:
        self.actions += outcome.actions_used
        self.goals = list(outcome.goals)
        if outcome.faction_joined:
            self.faction_joined = True
