"""Router package exports."""

from . import health, revision

__all__ = [
    "health",
    "revision",
]
