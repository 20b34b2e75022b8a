import numpy as np
import librosa
import pytest

from pytune_pitch.analysis.autocorrelation import (
    autocorrelation,
    estimate_pitch,
    parabolic_refine,
    signal_rms,
    skip_initial_slope,
    trim_strongest_region,
)

SR = 48000
N = 2048


def sine(freq: float, amp: float = 0.5, n: int = N, sr: int = SR) -> np.ndarray:
    return amp * librosa.tone(freq, sr=sr, length=n)


# ---------- estimate_pitch ----------

@pytest.mark.parametrize("freq", [220.0, 440.0, 330.0])
def test_sine_is_estimated_within_one_percent(freq):
    f0 = estimate_pitch(sine(freq), SR)
    assert f0 is not None
    assert abs(f0 - freq) / freq < 0.01


def test_noisy_sine_is_still_estimated():
    rng = np.random.default_rng(0)
    y = sine(220.0) + 0.01 * rng.standard_normal(N)
    f0 = estimate_pitch(y, SR)
    assert f0 is not None
    assert abs(f0 - 220.0) / 220.0 < 0.01


def test_fft_method_matches_direct():
    y = sine(261.63)
    direct = estimate_pitch(y, SR, method="direct")
    fast = estimate_pitch(y, SR, method="fft")
    assert direct is not None and fast is not None
    assert fast == pytest.approx(direct, rel=1e-6)


def test_silence_returns_none():
    assert estimate_pitch(np.zeros(N), SR) is None


def test_quiet_sine_below_rms_gate_returns_none():
    y = sine(220.0, amp=0.005)
    assert signal_rms(y) < 0.01
    assert estimate_pitch(y, SR) is None


def test_empty_buffer_returns_none():
    assert estimate_pitch(np.array([]), SR) is None


def test_too_short_region_returns_none():
    """2 échantillons forts : la zone utile est trop courte pour une parabole."""
    assert estimate_pitch(np.array([0.5, -0.5]), SR) is None


def test_constant_buffer_has_no_valley():
    """ACF strictement décroissante : pas de pic après lag 0."""
    assert estimate_pitch(np.full(256, 0.5), SR) is None


def test_input_buffer_is_not_modified():
    y = sine(220.0)
    before = y.copy()
    estimate_pitch(y, SR)
    np.testing.assert_array_equal(y, before)


def test_accepts_python_list():
    f0 = estimate_pitch(sine(440.0).tolist(), SR)
    assert f0 is not None and abs(f0 - 440.0) < 4.4


@pytest.mark.parametrize("sr", [0, -48000, float("nan")])
def test_invalid_sample_rate_raises(sr):
    with pytest.raises(ValueError):
        estimate_pitch(sine(220.0), sr)


def test_two_dimensional_buffer_raises():
    with pytest.raises(ValueError):
        estimate_pitch(np.zeros((2, N)), SR)


def test_never_returns_non_positive():
    rng = np.random.default_rng(42)
    for _ in range(20):
        y = rng.uniform(-1.0, 1.0, 512)
        f0 = estimate_pitch(y, SR)
        assert f0 is None or f0 > 0


# ---------- trim_strongest_region ----------

def test_trim_skips_loud_head_and_tail():
    y = np.full(16, 0.5)
    y[3] = 0.05      # premier échantillon faible depuis le début
    y[12] = -0.1     # premier échantillon faible depuis la fin
    assert trim_strongest_region(y) == (3, 12)


def test_trim_quiet_buffer_drops_only_last_sample():
    """Tout sous le seuil : left=0 et right=len-1 (le scan arrière démarre à len-1)."""
    y = sine(220.0, amp=0.1)
    assert trim_strongest_region(y) == (0, N - 1)


def test_trim_keeps_full_buffer_without_weak_samples():
    """Aucun |x| < 0.2 dans les moitiés scannées → bornes par défaut."""
    t = np.arange(N) / SR
    square = 0.8 * np.where(np.sin(2 * np.pi * 220.0 * t) >= 0, 1.0, -1.0)
    assert trim_strongest_region(square) == (0, N)


def test_trim_scans_only_half_of_the_buffer():
    y = np.full(10, 0.9)
    y[7] = 0.0       # dans la moitié arrière : ignoré par le scan avant
    assert trim_strongest_region(y) == (0, 7)
    y = np.full(10, 0.9)
    y[2] = 0.0       # dans la moitié avant : ignoré par le scan arrière
    assert trim_strongest_region(y) == (2, 10)


def test_trim_bounds_always_ordered():
    rng = np.random.default_rng(1)
    for n in range(1, 40):
        left, right = trim_strongest_region(rng.uniform(-1, 1, n))
        assert 0 <= left < right <= n


# ---------- briques ACF ----------

def test_autocorrelation_small_vector():
    np.testing.assert_allclose(autocorrelation([1.0, 2.0, 3.0]), [14.0, 8.0, 3.0])


def test_autocorrelation_fft_agrees_with_direct():
    rng = np.random.default_rng(7)
    y = rng.uniform(-1, 1, 300)
    np.testing.assert_allclose(
        autocorrelation(y, method="fft"), autocorrelation(y, method="direct"), atol=1e-8
    )


def test_autocorrelation_unknown_method_raises():
    with pytest.raises(ValueError):
        autocorrelation([1.0, 2.0], method="wavelet")


def test_skip_initial_slope():
    assert skip_initial_slope(np.array([5.0, 3.0, 1.0, 2.0, 4.0])) == 2
    assert skip_initial_slope(np.array([5.0, 5.0, 1.0])) == 0
    assert skip_initial_slope(np.array([3.0, 2.0, 1.0])) == 2


def test_parabolic_refine_vertex():
    assert parabolic_refine(np.array([1.0, 3.0, 1.0]), 1) == pytest.approx(1.0)
    assert parabolic_refine(np.array([1.0, 3.0, 2.0]), 1) == pytest.approx(1.0 + 1.0 / 6.0)


def test_parabolic_refine_flat_keeps_integer_lag():
    assert parabolic_refine(np.array([2.0, 2.0, 2.0]), 1) == 1.0


def test_parabolic_refine_boundary_returns_none():
    c = np.array([1.0, 2.0, 3.0])
    assert parabolic_refine(c, 0) is None
    assert parabolic_refine(c, 2) is None
