"""Spaced-repetition revision planner."""

__version__ = "0.1.0"
