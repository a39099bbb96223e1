"""Agent motion along navmesh paths and the destination marker."""

from mazenav.agent.controller import AgentController, MotionState
from mazenav.agent.marker import DestinationMarker

__all__ = ["AgentController", "MotionState", "DestinationMarker"]
