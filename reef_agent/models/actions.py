"""Action candidate models produced by the candidate generator."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Verbs that remain legal while the agent is in combat.
COMBAT_ACTIONS = frozenset({"fight", "attack", "flee", "use", "rest"})


class ActionCandidate(BaseModel):
    """A possible next action with a computed desirability score.

    Candidates are ephemeral: generated, scored, and discarded every loop
    iteration. The score is mutable so that noise and loop-guard penalties
    can be applied after generation.
    """

    action: str = Field(..., min_length=1, description="Action verb")
    target: str | None = Field(default=None, description="Optional action target")
    params: dict[str, str] = Field(default_factory=dict, description="Optional parameters")
    score: float = Field(default=0.0)
    reason: str = Field(default="", description="Human-readable rationale")

    @property
    def key(self) -> str:
        """Identity used for repetition tracking (action plus target)."""
        return f"{self.action}→{self.target}" if self.target else self.action

    def describe(self) -> str:
        arrow = f" → {self.target}" if self.target else ""
        return f"{self.action}{arrow} ({self.score:.2f}): {self.reason}"

    def to_log(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "target": self.target,
            "score": round(self.score, 3),
            "reason": self.reason,
        }
