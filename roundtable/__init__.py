"""Roundtable: multi-agent, turn-based debates that end in a vote."""

__version__ = "0.1.0"
