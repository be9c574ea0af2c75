from unittest.mock import patch

import pytest

from presence_keeper.energy import DisplayEnergyController, EnergyMode


@pytest.fixture
def controller():
    controller = DisplayEnergyController()
    with patch.object(DisplayEnergyController, "_actuate") as actuate:
        controller.actuate = actuate
        yield controller


def test_apply_is_edge_triggered(controller):
    assert controller.apply(EnergyMode.DIM) is True
    assert controller.apply(EnergyMode.DIM) is False
    assert controller.actuate.call_count == 1
    assert controller.mode is EnergyMode.DIM


def test_reset_restores_normal_only_when_changed(controller):
    controller.reset()
    assert controller.actuate.call_count == 0

    controller.apply(EnergyMode.OFF)
    controller.reset()
    controller.reset()

    assert controller.mode is EnergyMode.NORMAL
    assert controller.actuate.call_count == 2


def test_failed_actuation_keeps_previous_mode(controller):
    controller.actuate.side_effect = OSError("no display")

    assert controller.apply(EnergyMode.SLEEP) is False
    assert controller.mode is EnergyMode.NORMAL


def test_parse_energy_mode():
    assert EnergyMode.parse("dim") is EnergyMode.DIM
    with pytest.raises(ValueError):
        EnergyMode.parse("Hibernate")
