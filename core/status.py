# core/status.py
from __future__ import annotations

from typing import Dict, FrozenSet

from core.errors import InvalidTransition
from core.schemas import GenerationStatus

S = GenerationStatus

_TRANSITIONS: Dict[GenerationStatus, FrozenSet[GenerationStatus]] = {
    S.IDLE: frozenset({S.WRITING}),
    S.WRITING: frozenset({S.ILLUSTRATING, S.ERROR}),
    S.ILLUSTRATING: frozenset({S.READY, S.ERROR}),
    S.READY: frozenset(),
    S.ERROR: frozenset(),
}


class GenerationState:
    """
    idle -> writing -> illustrating -> ready, with error reachable from any
    non-idle state. ready and error are terminal for one attempt; reset()
    starts the next attempt from idle.
    """

    def __init__(self) -> None:
        self._status = S.IDLE

    @property
    def status(self) -> GenerationStatus:
        return self._status

    def can(self, target: GenerationStatus) -> bool:
        return target in _TRANSITIONS[self._status]

    def advance(self, target: GenerationStatus) -> GenerationStatus:
        if not self.can(target):
            raise InvalidTransition(f"{self._status.value} -> {target.value}")
        self._status = target
        return target

    def fail(self) -> bool:
        """Move to error if that is still legal. Returns whether it moved."""
        if self.can(S.ERROR):
            self._status = S.ERROR
            return True
        return False

    def reset(self) -> None:
        self._status = S.IDLE
