# pytune_pitch/analysis/autocorrelation.py
# -----------------------------------------------------------------------------
# Estimation f0 par autocorrélation (ACF2+)
# Gate RMS → trim des bords faibles → ACF → saut de la pente initiale
# → pic max → interpolation parabolique → sr / T0
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
from typing import Literal, Optional, Tuple

import numpy as np
from scipy.signal import correlate


# ===== Tunables ==============================================================
RMS_THRESHOLD = float(os.getenv("PYTUNE_RMS_THRESHOLD", "0.01"))    # gate silence
CLIP_THRESHOLD = float(os.getenv("PYTUNE_CLIP_THRESHOLD", "0.2"))   # seuil de trim
ACF_DEBUG = bool(int(os.getenv("PYTUNE_ACF_DEBUG", "0")))
def _dbg(*a):
    if ACF_DEBUG: print("[ACF]", *a)


CorrelationMethod = Literal["direct", "fft"]


def _as_buffer(buffer) -> np.ndarray:
    x = np.asarray(buffer, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected a 1-D sample buffer, got shape {x.shape}")
    return x


# ===== Briques ===============================================================
def signal_rms(buffer) -> float:
    """RMS du buffer complet (0.0 pour un buffer vide)."""
    x = _as_buffer(buffer)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def trim_strongest_region(buffer, threshold: float = CLIP_THRESHOLD) -> Tuple[int, int]:
    """
    Bornes [left, right) de la zone utile.

    - left  : premier index (moitié avant) avec |x| < threshold, sinon 0
    - right : premier index en partant de la fin (moitié arrière) avec |x| < threshold,
              sinon len(buffer)

    Les scans ne couvrent qu'une moitié chacun : un buffer sans échantillon
    sous le seuil dans ces moitiés est gardé entier.
    """
    x = _as_buffer(buffer)
    n = x.size
    half = (n + 1) // 2
    below = np.abs(x) < threshold

    left, right = 0, n

    head = np.flatnonzero(below[:half])
    if head.size:
        left = int(head[0])

    tail_idx = n - np.arange(1, half)        # n-1, n-2, ... (vers le centre)
    hits = tail_idx[below[tail_idx]]
    if hits.size:
        right = int(hits[0])

    return left, right


def autocorrelation(buffer, method: CorrelationMethod = "direct") -> np.ndarray:
    """
    c[i] = Σ_j x[j]·x[j+i], i ∈ [0, M).

    "direct" : O(M²), exact.
    "fft"    : scipy.signal.correlate(method="fft"), identique à la précision float près.
    """
    x = _as_buffer(buffer)
    n = x.size
    if n == 0:
        return np.zeros(0, dtype=np.float64)

    if method == "direct":
        full = np.correlate(x, x, mode="full")
    elif method == "fft":
        full = correlate(x, x, mode="full", method="fft")
    else:
        raise ValueError(f"Unknown correlation method '{method}'")

    return np.asarray(full[n - 1:], dtype=np.float64)


def skip_initial_slope(c: np.ndarray) -> int:
    """Premier lag d tel que c[d] <= c[d+1] (fin de la pente descendante depuis lag 0)."""
    c = np.asarray(c, dtype=np.float64)
    if c.size < 2:
        return max(c.size - 1, 0)
    rising = np.flatnonzero(~(c[:-1] > c[1:]))
    if rising.size == 0:
        return c.size - 1
    return int(rising[0])


def parabolic_refine(c: np.ndarray, t0: int) -> Optional[float]:
    """
    Sommet de la parabole passant par c[t0-1], c[t0], c[t0+1].
    None si t0 n'a pas ses deux voisins.
    """
    c = np.asarray(c, dtype=np.float64)
    if t0 < 1 or t0 > c.size - 2:
        return None

    x1, x2, x3 = float(c[t0 - 1]), float(c[t0]), float(c[t0 + 1])
    a = (x1 + x3 - 2.0 * x2) / 2.0
    b = (x3 - x1) / 2.0
    if a:
        return t0 - b / (2.0 * a)
    return float(t0)


# ===== Estimateur ============================================================
def estimate_pitch(
    buffer,
    sample_rate: float,
    method: CorrelationMethod = "direct",
    rms_threshold: float = RMS_THRESHOLD,
    clip_threshold: float = CLIP_THRESHOLD,
) -> Optional[float]:
    """
    Estime la fréquence fondamentale (Hz) d'un buffer audio, ou None.

    Sans état : même buffer → même résultat. Tous les cas dégénérés
    (silence, zone utile trop courte, ACF sans pic, pic en bord) donnent None.

    Parameters
    ----------
    buffer : array-like
        Échantillons temporels mono, nominalement dans [-1, 1] (non modifié).
    sample_rate : float
        Fréquence d'échantillonnage (Hz), > 0.
    method : "direct" | "fft"
        Calcul de l'autocorrélation.

    Notes
    -----
    Coût O(M²) en "direct" : prévu pour une fenêtre de ~1–2k échantillons
    appelée toutes les ~100 ms, pas pour un flux continu.
    """
    if not np.isfinite(sample_rate) or sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    x = _as_buffer(buffer)
    if x.size == 0:
        return None

    rms = signal_rms(x)
    if not np.isfinite(rms) or rms < rms_threshold:
        _dbg(f"silence rms={rms:.4f}")
        return None

    left, right = trim_strongest_region(x, clip_threshold)
    seg = x[left:right]
    if seg.size < 3:
        _dbg(f"trimmed region too short [{left},{right})")
        return None

    c = autocorrelation(seg, method=method)

    d = skip_initial_slope(c)
    if d >= c.size - 1:
        _dbg("no valley after lag 0")
        return None

    t0 = d + int(np.argmax(c[d:]))
    period = parabolic_refine(c, t0)
    if period is None or not np.isfinite(period) or period <= 0:
        _dbg(f"peak at boundary or degenerate period (T0={t0})")
        return None

    f0 = float(sample_rate / period)
    if not np.isfinite(f0) or f0 <= 0:
        return None

    _dbg(f"rms={rms:.3f} trim=[{left},{right}) d={d} T0={t0} → {period:.3f} → {f0:.2f} Hz")
    return f0
