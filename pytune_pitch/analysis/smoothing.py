from __future__ import annotations

from typing import Optional

DEFAULT_SMOOTHING_FACTOR = 0.3


class FrequencySmoother:
    """
    Lissage exponentiel pour l'affichage : s ← s·(1-α) + f·α.
    Une absence (None) remet le lissage à zéro.
    """

    def __init__(self, factor: float = DEFAULT_SMOOTHING_FACTOR):
        if not 0.0 < factor <= 1.0:
            raise ValueError(f"Smoothing factor must be in (0, 1], got {factor}")
        self.factor = float(factor)
        self._value: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        return self._value

    def update(self, frequency: Optional[float]) -> Optional[float]:
        if frequency is None:
            self._value = None
            return None

        if self._value is None:
            self._value = float(frequency)
        else:
            self._value = self._value * (1.0 - self.factor) + float(frequency) * self.factor
        return self._value

    def reset(self) -> None:
        self._value = None
