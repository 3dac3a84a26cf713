from __future__ import annotations

from enum import Enum, auto


class ToolMode(Enum):
    SELECT = "select"
    ROTATE = "rotate"
    PLACE = "place"


class EditPhase(Enum):
    IDLE = auto()
    SELECTING = auto()
    FRAGMENTING = auto()
    PLACING = auto()

    @property
    def tool_mode(self) -> ToolMode:
        return _TOOL_MODES[self]


_TOOL_MODES = {
    EditPhase.IDLE: ToolMode.SELECT,
    EditPhase.SELECTING: ToolMode.SELECT,
    EditPhase.FRAGMENTING: ToolMode.ROTATE,
    EditPhase.PLACING: ToolMode.PLACE,
}

_TRANSITIONS = {
    EditPhase.IDLE: frozenset({EditPhase.SELECTING, EditPhase.FRAGMENTING}),
    EditPhase.SELECTING: frozenset({EditPhase.IDLE, EditPhase.FRAGMENTING}),
    EditPhase.FRAGMENTING: frozenset({EditPhase.IDLE, EditPhase.PLACING}),
    EditPhase.PLACING: frozenset({EditPhase.IDLE}),
}


class IllegalTransitionError(RuntimeError):
    def __init__(self, current: EditPhase, target: EditPhase):
        super().__init__(f"Cannot go from {current.name} to {target.name}")
        self.current = current
        self.target = target


class EditState:
    """Current phase of the select/rotate/place cycle.

    Only the moves listed in the transition table are allowed; staying in
    the same phase is always a no-op.
    """

    def __init__(self, phase: EditPhase = EditPhase.IDLE):
        self._phase = phase

    @property
    def phase(self) -> EditPhase:
        return self._phase

    @property
    def tool_mode(self) -> ToolMode:
        return self._phase.tool_mode

    def can_transition(self, target: EditPhase) -> bool:
        return target is self._phase or target in _TRANSITIONS[self._phase]

    def transition(self, target: EditPhase) -> bool:
        """Move to *target*. Returns ``True`` if the phase actually changed."""
        if target is self._phase:
            return False
        if target not in _TRANSITIONS[self._phase]:
            raise IllegalTransitionError(self._phase, target)
        self._phase = target
        return True

    def reset(self) -> bool:
        return self.transition(EditPhase.IDLE)
