"""Core agent logic package.

This package provides:
- extract_game_state / merge_action_result: narrative and payload parsing
- SessionController: one bounded session from registration to report
- ControllerConfig: timing and bookkeeping settings for the controller
- SessionPhase: phases a session moves through
- build_reflection / build_summary: end-of-session report text
"""

from reef_agent.core.extraction import (
    UNKNOWN_ZONE,
    RejectionKind,
    RejectionSignal,
    classify_rejection,
    extract_game_state,
    merge_action_result,
    parse_quests,
)
from reef_agent.core.loop import ControllerConfig, SessionController, SessionPhase
from reef_agent.core.report import ReflectionBucket, SessionOutcome, build_reflection, build_summary

__all__ = [
    "UNKNOWN_ZONE",
    "ControllerConfig",
    "ReflectionBucket",
    "RejectionKind",
    "RejectionSignal",
    "SessionController",
    "SessionOutcome",
    "SessionPhase",
    "build_reflection",
    "build_summary",
    "classify_rejection",
    "extract_game_state",
    "merge_action_result",
    "parse_quests",
]
