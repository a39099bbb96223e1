"""Core base classes for mazenav."""

from mazenav.core.event import Event

__all__ = ["Event"]
