"""Pointer gesture handlers driven by the rotation engine."""

from .basetool import BaseTool
from .placetool import PlacementController
from .selecttool import SelectionPhase, SelectionTracker

__all__ = ["BaseTool", "PlacementController", "SelectionPhase", "SelectionTracker"]
