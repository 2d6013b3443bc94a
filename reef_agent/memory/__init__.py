"""Persistence for the agent record that survives across sessions."""

from reef_agent.memory.persistence import AgentRecordStore, CorruptedRecordError, PersistenceError

__all__ = [
    "AgentRecordStore",
    "CorruptedRecordError",
    "PersistenceError",
]
