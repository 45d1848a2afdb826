# tools/progress.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Set

ProgressCB = Callable[[float, str], None]

# Relative weight of each pipeline stage in the overall bar.
DEFAULT_WEIGHTS: Dict[str, float] = {
    "plan": 1.0,
    "writer": 1.0,
    "game": 0.5,
    "media": 4.0,
}


@dataclass
class ProgressTracker:
    cb: Optional[ProgressCB] = None
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    def __post_init__(self) -> None:
        self._done: Set[str] = set()

    def _emit(self, p: float, msg: str) -> None:
        if self.cb:
            self.cb(max(0.0, min(1.0, p)), msg)

    def start(self, stage: str, msg: str) -> None:
        self._emit(self.progress(stage, 0.0), msg)

    def done(self, stage: str, msg: Optional[str] = None) -> None:
        self._done.add(stage)
        if msg is not None:
            self._emit(self.progress(stage, 1.0), msg)

    def update(self, stage: str, frac: float, msg: str) -> None:
        self._emit(self.progress(stage, frac), msg)

    def progress(self, stage: str, frac: float) -> float:
        # sum weights of stages already fully completed + current stage partial
        total_w = sum(self.weights.values()) or 1.0
        p = 0.0
        for s, w in self.weights.items():
            if s == stage:
                p += w * frac
            elif s in self._done:
                p += w
        return p / total_w
