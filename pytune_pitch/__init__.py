"""
PyTune Pitch — détection de hauteur temps réel
----------------------------------------------

Estimation f0 par autocorrélation (ACF2+) sur un buffer audio, puis
stabilisation temporelle sur plusieurs buffers consécutifs.

Structure :
    analysis/autocorrelation.py → estimate_pitch (sans état) + briques ACF
    analysis/tracker.py         → PitchTracker (historique, plage, cohérence)
    analysis/smoothing.py       → lissage exponentiel d'affichage
    analysis/stream.py          → PitchMonitor (cadence) + track_signal (hors-ligne)
    types/                      → réglages pydantic, dataclasses, enums
"""

from pytune_pitch.analysis.autocorrelation import estimate_pitch
from pytune_pitch.analysis.smoothing import FrequencySmoother
from pytune_pitch.analysis.stream import PitchMonitor, track_signal
from pytune_pitch.analysis.tracker import PitchTracker
from pytune_pitch.types.dataclasses import TrackedFrame, TrackerObservation
from pytune_pitch.types.enums import TrackerState
from pytune_pitch.types.schemas import SensitivitySettings, SensitivityUpdate

__all__ = [
    "estimate_pitch",
    "PitchTracker",
    "FrequencySmoother",
    "PitchMonitor",
    "track_signal",
    "SensitivitySettings",
    "SensitivityUpdate",
    "TrackerObservation",
    "TrackedFrame",
    "TrackerState",
]
