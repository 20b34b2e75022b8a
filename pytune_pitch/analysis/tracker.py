# pytune_pitch/analysis/tracker.py
from __future__ import annotations

import math
import os
from collections import deque
from typing import Any, Deque, Mapping, Optional, Tuple, Union

import numpy as np

from pytune_pitch.analysis.autocorrelation import CorrelationMethod, estimate_pitch
from pytune_pitch.types.dataclasses import TrackerObservation
from pytune_pitch.types.enums import TrackerState
from pytune_pitch.types.schemas import SensitivitySettings, SensitivityUpdate

# Plage plausible voix / instruments (bornes incluses)
MIN_FREQUENCY = float(os.getenv("PYTUNE_MIN_HZ", "60"))
MAX_FREQUENCY = float(os.getenv("PYTUNE_MAX_HZ", "1000"))

# --- logging ---
TRACKER_DEBUG = bool(int(os.getenv("PYTUNE_TRACKER_DEBUG", "0")))
TRACK_PREFIX = "[TRACK]"
def _track_log(msg: str):
    if TRACKER_DEBUG:
        print(f"{TRACK_PREFIX} {msg}")


class PitchTracker:
    """
    Stabilisation temporelle des estimations brutes.

    Une fréquence n'est renvoyée qu'après `history_size` lectures consécutives
    dans [min_frequency, max_frequency], toutes à moins de `pitch_tolerance` Hz
    de leur moyenne. Toute lecture absente ou hors plage vide l'historique.

    Non thread-safe : l'appelant sérialise les appels (≈ 1 appel / 100 ms).
    """

    def __init__(
        self,
        settings: Optional[SensitivitySettings] = None,
        min_frequency: float = MIN_FREQUENCY,
        max_frequency: float = MAX_FREQUENCY,
        method: CorrelationMethod = "direct",
    ):
        if min_frequency <= 0 or max_frequency < min_frequency:
            raise ValueError(
                f"Invalid frequency range [{min_frequency}, {max_frequency}]"
            )
        self._settings = settings if settings is not None else SensitivitySettings()
        self._min = float(min_frequency)
        self._max = float(max_frequency)
        self._method = method
        self._history: Deque[float] = deque(maxlen=self._settings.history_size)

    # ---------- état ----------
    @property
    def settings(self) -> SensitivitySettings:
        return self._settings

    @property
    def history(self) -> Tuple[float, ...]:
        return tuple(self._history)

    @property
    def min_frequency(self) -> float:
        return self._min

    @property
    def max_frequency(self) -> float:
        return self._max

    @property
    def state(self) -> TrackerState:
        if not self._history:
            return TrackerState.EMPTY
        if len(self._history) < self._settings.history_size:
            return TrackerState.FILLING
        if self._consensus() is None:
            return TrackerState.UNSTABLE
        return TrackerState.STABLE

    # ---------- observations ----------
    def observe(self, buffer, sample_rate: float) -> Optional[float]:
        """Estime le pitch du buffer et renvoie la fréquence stabilisée (ou None)."""
        raw = estimate_pitch(buffer, sample_rate, method=self._method)
        return self.observe_raw(raw)

    def observe_detailed(self, buffer, sample_rate: float) -> TrackerObservation:
        raw = estimate_pitch(buffer, sample_rate, method=self._method)
        frequency = self.observe_raw(raw)
        return TrackerObservation(
            raw=raw,
            frequency=frequency,
            state=self.state,
            history=self.history,
        )

    def observe_raw(self, raw: Optional[float]) -> Optional[float]:
        """Applique gate de plage + historique + cohérence à une estimation brute."""
        if raw is None or not math.isfinite(raw) or raw < self._min or raw > self._max:
            if self._history:
                _track_log(f"reject raw={raw} → history cleared ({len(self._history)} dropped)")
            self._history.clear()
            return None

        self._history.append(float(raw))
        return self._consensus()

    def _consensus(self) -> Optional[float]:
        if len(self._history) < self._settings.history_size:
            return None

        avg = float(np.mean(self._history))
        tol = self._settings.pitch_tolerance
        if all(abs(f - avg) < tol for f in self._history):
            return avg

        _track_log(f"inconsistent history {list(self._history)} (avg={avg:.2f}, tol={tol})")
        return None

    # ---------- contrôle ----------
    def reset(self) -> None:
        self._history.clear()

    def set_sensitivity(
        self,
        update: Union[SensitivityUpdate, Mapping[str, Any], None] = None,
        **fields: Any,
    ) -> SensitivitySettings:
        """
        Met à jour history_size et/ou pitch_tolerance puis vide l'historique.

        Accepte un SensitivityUpdate, un dict (snake_case ou camelCase)
        et/ou des kwargs. Lève pydantic.ValidationError sans rien modifier
        si une valeur est invalide.
        """
        changes: dict = {}
        if update is not None:
            if not isinstance(update, SensitivityUpdate):
                update = SensitivityUpdate.model_validate(update)
            changes.update(update.model_dump(exclude_none=True))
        if fields:
            changes.update(SensitivityUpdate.model_validate(fields).model_dump(exclude_none=True))

        self._settings = SensitivityUpdate(**changes).apply(self._settings)
        self._history = deque(maxlen=self._settings.history_size)
        _track_log(f"sensitivity → {self._settings.model_dump()}")
        return self._settings
