# pytune_pitch/types/schemas.py
from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ────────────────────────────────────────────────────────────────────────────
# Sensibilité du tracker (configuration exposée à l'appelant)
# ────────────────────────────────────────────────────────────────────────────
class SensitivitySettings(BaseModel):
    """
    Réglages de stabilisation temporelle.

    - history_size   : nb de lectures consécutives nécessaires avant d'afficher un pitch
    - pitch_tolerance: écart max (Hz, strict) de chaque lecture à la moyenne

    Les clés camelCase (historySize / pitchTolerance) sont acceptées en entrée.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    history_size: int = Field(
        3, ge=1, alias="historySize", description="Consecutive in-range readings required"
    )
    pitch_tolerance: float = Field(
        15.0, ge=0.0, alias="pitchTolerance", description="Max deviation from the mean (Hz)"
    )

    @field_validator("pitch_tolerance")
    @classmethod
    def validate_pitch_tolerance(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"pitch_tolerance must be finite, got {v}")
        return v


class SensitivityUpdate(BaseModel):
    """Mise à jour partielle : un champ absent (None) reste inchangé."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    history_size: Optional[int] = Field(default=None, ge=1, alias="historySize")
    pitch_tolerance: Optional[float] = Field(default=None, ge=0.0, alias="pitchTolerance")

    @field_validator("pitch_tolerance")
    @classmethod
    def validate_pitch_tolerance(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not math.isfinite(v):
            raise ValueError(f"pitch_tolerance must be finite, got {v}")
        return v

    def apply(self, settings: SensitivitySettings) -> SensitivitySettings:
        changes = self.model_dump(exclude_none=True)
        return settings.model_copy(update=changes)
