"""Mint Scores: game-session lifecycle and anti-cheat scoring backend."""

__version__ = "0.1.0"
