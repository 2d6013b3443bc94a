"""Autonomous agent for the Reef text RPG."""

__version__ = "0.1.0"
