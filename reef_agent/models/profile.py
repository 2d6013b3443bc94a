"""Behavior profile model derived from the agent's emotional state."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field

Axis = Annotated[float, Field(ge=0.0, le=1.0)]

PRIMARY_EMOTIONS: tuple[str, ...] = (
    "joy",
    "trust",
    "fear",
    "surprise",
    "sadness",
    "disgust",
    "anger",
    "anticipation",
)


class BehaviorProfile(BaseModel):
    """Six-axis personality used to bias action scoring.

    Attributes:
        aggression: Favors combat over gathering.
        exploration: Willingness to move zones; also scales scoring noise.
        caution: Tendency to rest, flee and heal.
        sociability: Broadcasts, inbox and trades.
        greed: Gathering and shopping.
        persistence: Grinding and questing.
    """

    aggression: Axis = 0.0
    exploration: Axis = 0.0
    caution: Axis = 0.0
    sociability: Axis = 0.0
    greed: Axis = 0.0
    persistence: Axis = 0.0

    model_config = {"frozen": True}

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()

    def describe(self) -> str:
        return " ".join(f"{name}={value:.2f}" for name, value in self.as_dict().items())
