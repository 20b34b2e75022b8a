from dataclasses import dataclass, field
from typing import Optional, Tuple

from pytune_pitch.types.enums import TrackerState


@dataclass(frozen=True)
class TrackerObservation:
    raw: Optional[float]                 # estimation brute (None = pas de pitch)
    frequency: Optional[float]           # fréquence stabilisée (None = pas encore / incohérent)
    state: TrackerState = TrackerState.EMPTY
    history: Tuple[float, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TrackedFrame:
    index: int
    time: float                          # début de la trame (s)
    raw: Optional[float]
    frequency: Optional[float]
