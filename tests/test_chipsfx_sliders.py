import pytest

from chipsfx.errors import InvalidParamsError
from chipsfx.params import FLOAT_PARAMS
from chipsfx.sliders import SLIDERS, SLIDERS_INVERSE, from_engine_units, to_engine_units


def test_every_slider_has_both_directions() -> None:
    assert set(SLIDERS) == set(SLIDERS_INVERSE)
    assert set(FLOAT_PARAMS) <= set(SLIDERS)
    assert "sound_vol" in SLIDERS


@pytest.mark.parametrize("name", sorted(SLIDERS))
def test_inverse_recovers_slider(name: str) -> None:
    engine_value = to_engine_units(name, 0.5)
    assert from_engine_units(name, engine_value) == pytest.approx(0.5, abs=1e-6)


@pytest.mark.parametrize("name", ["p_arp_mod", "p_pha_offset", "p_pha_ramp", "p_freq_ramp"])
def test_inverse_recovers_negative_slider(name: str) -> None:
    engine_value = to_engine_units(name, -0.5)
    assert from_engine_units(name, engine_value) == pytest.approx(-0.5, abs=1e-6)


def test_engine_units() -> None:
    assert to_engine_units("p_env_sustain", 0.5) == pytest.approx(25_000)
    assert to_engine_units("p_duty", 1.0) == 0.0
    assert to_engine_units("p_repeat_speed", 0.0) == 0
    assert to_engine_units("p_arp_speed", 1.0) == 0
    assert to_engine_units("p_base_freq", 0.0) == pytest.approx(3.528)


def test_unknown_slider() -> None:
    with pytest.raises(InvalidParamsError):
        to_engine_units("p_volume", 0.5)
    with pytest.raises(InvalidParamsError):
        from_engine_units("p_volume", 0.5)
