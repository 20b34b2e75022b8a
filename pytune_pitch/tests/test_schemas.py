import pytest
from pydantic import ValidationError

from pytune_pitch.types.schemas import SensitivitySettings, SensitivityUpdate


def test_defaults():
    s = SensitivitySettings()
    assert s.history_size == 3
    assert s.pitch_tolerance == 15.0


def test_camel_case_aliases():
    s = SensitivitySettings.model_validate({"historySize": 4, "pitchTolerance": 7.5})
    assert (s.history_size, s.pitch_tolerance) == (4, 7.5)


def test_zero_tolerance_is_allowed():
    assert SensitivitySettings(pitch_tolerance=0.0).pitch_tolerance == 0.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"history_size": 0},
        {"history_size": 2.5},
        {"pitch_tolerance": -0.1},
        {"pitch_tolerance": float("inf")},
        {"unknown": 1},
    ],
)
def test_invalid_settings_raise(kwargs):
    with pytest.raises(ValidationError):
        SensitivitySettings(**kwargs)


def test_settings_are_immutable():
    s = SensitivitySettings()
    with pytest.raises(ValidationError):
        s.history_size = 10


def test_partial_update_keeps_other_field():
    base = SensitivitySettings(history_size=4, pitch_tolerance=10.0)
    assert SensitivityUpdate(pitch_tolerance=5).apply(base) == SensitivitySettings(
        history_size=4, pitch_tolerance=5.0
    )
    assert SensitivityUpdate().apply(base) == base
