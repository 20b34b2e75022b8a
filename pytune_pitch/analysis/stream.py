# pytune_pitch/analysis/stream.py
"""
stream.py
=========
Pilotage du tracker sur un flux de buffers :
- PitchMonitor : cadence limitée (défaut 100 ms) + lissage d'affichage + listeners
- track_signal : analyse hors-ligne d'un signal enregistré, trame par trame
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional, Tuple

import librosa
import numpy as np

from pytune_pitch.analysis.smoothing import DEFAULT_SMOOTHING_FACTOR, FrequencySmoother
from pytune_pitch.analysis.tracker import PitchTracker
from pytune_pitch.types.dataclasses import TrackedFrame

DEFAULT_INTERVAL = 0.1          # s entre deux analyses (borne le coût O(M²))
DEFAULT_FRAME_LENGTH = 2048

PitchListener = Callable[[Optional[float]], None]


class PitchMonitor:
    """
    Reçoit des buffers aussi souvent que la source le veut, n'en analyse
    qu'un par `interval` secondes. Chaque analyse passe par le tracker puis
    (optionnellement) par le lissage, et notifie les listeners.
    """

    def __init__(
        self,
        sample_rate: float,
        tracker: Optional[PitchTracker] = None,
        smoothing_factor: Optional[float] = DEFAULT_SMOOTHING_FACTOR,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")

        self.sample_rate = sample_rate
        self.tracker = tracker if tracker is not None else PitchTracker()
        self.smoother = FrequencySmoother(smoothing_factor) if smoothing_factor is not None else None
        self.interval = float(interval)
        self._clock = clock
        self._last_run: Optional[float] = None
        self._frequency: Optional[float] = None
        self._listeners: List[PitchListener] = []

    @property
    def frequency(self) -> Optional[float]:
        """Dernière fréquence affichable (None = rien de stable)."""
        return self._frequency

    def add_listener(self, listener: PitchListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PitchListener) -> None:
        self._listeners.remove(listener)

    def process(self, buffer) -> Tuple[bool, Optional[float]]:
        """
        Retourne (analysé, fréquence). Un buffer reçu avant la fin de
        l'intervalle est ignoré et la fréquence précédente est conservée.
        """
        now = self._clock()
        if self._last_run is not None and now - self._last_run < self.interval:
            return False, self._frequency
        self._last_run = now

        stabilized = self.tracker.observe(buffer, self.sample_rate)
        if self.smoother is not None:
            stabilized = self.smoother.update(stabilized)
        self._frequency = stabilized

        for listener in list(self._listeners):
            listener(self._frequency)
        return True, self._frequency

    def reset(self) -> None:
        self.tracker.reset()
        if self.smoother is not None:
            self.smoother.reset()
        self._last_run = None
        self._frequency = None


def track_signal(
    signal: np.ndarray,
    sample_rate: float,
    frame_length: int = DEFAULT_FRAME_LENGTH,
    hop_length: Optional[int] = None,
    tracker: Optional[PitchTracker] = None,
) -> List[TrackedFrame]:
    """
    Découpe un signal mono en trames (librosa.util.frame) et passe chaque
    trame au tracker, comme le ferait une capture live à cadence fixe.

    hop_length par défaut = DEFAULT_INTERVAL secondes d'échantillons.
    Un signal plus court qu'une trame renvoie [].
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    if frame_length < 3:
        raise ValueError(f"frame_length must be >= 3, got {frame_length}")

    y = np.ascontiguousarray(signal, dtype=np.float64)
    if y.ndim != 1:
        raise ValueError(f"Expected a mono signal, got shape {y.shape}")

    if hop_length is None:
        hop_length = max(1, int(round(DEFAULT_INTERVAL * sample_rate)))
    if hop_length < 1:
        raise ValueError(f"hop_length must be >= 1, got {hop_length}")

    if y.size < frame_length:
        return []

    if tracker is None:
        tracker = PitchTracker()

    frames = librosa.util.frame(y, frame_length=frame_length, hop_length=hop_length)

    out: List[TrackedFrame] = []
    for i in range(frames.shape[-1]):
        obs = tracker.observe_detailed(frames[:, i], sample_rate)
        out.append(
            TrackedFrame(
                index=i,
                time=i * hop_length / float(sample_rate),
                raw=obs.raw,
                frequency=obs.frequency,
            )
        )
    return out
