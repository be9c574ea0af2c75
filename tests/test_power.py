import subprocess
from datetime import timedelta
from unittest.mock import Mock, patch

from presence_keeper.power import (
    clamp_wait_bounds,
    get_sleep_timeout_seconds,
    is_on_ac_power,
    parse_powercfg_output,
)

POWERCFG_OUTPUT = """
Power Scheme GUID: 381b4222-f694-41f0-9685-ff5bb260df2e  (Balanced)
  Subgroup GUID: 238c9fa8-0aad-41ed-83f4-97be242c8f20  (Sleep)
    Power Setting GUID: 29f6c1db-86da-48c5-9fdb-f2b67b1f44da  (Sleep after)
      Minimum Possible Setting: 0x00000000
      Maximum Possible Setting: 0xffffffff
      Possible Settings increment: 0x00000001
      Possible Settings units: Seconds
    Current AC Power Setting Index: 0x00000708
    Current DC Power Setting Index: 0x00000384
"""


def test_parse_powercfg_output():
    assert parse_powercfg_output(POWERCFG_OUTPUT, "AC") == 1800
    assert parse_powercfg_output(POWERCFG_OUTPUT, "dc") == 900
    assert parse_powercfg_output("nothing here", "AC") is None


def test_get_sleep_timeout_runs_powercfg():
    completed = Mock(stdout=POWERCFG_OUTPUT)
    with patch("presence_keeper.power.subprocess.run", return_value=completed) as run:
        assert get_sleep_timeout_seconds("DC") == 900
    assert run.call_args.args[0][0] == "powercfg"
    assert run.call_args.kwargs["timeout"] > 0


def test_get_sleep_timeout_failure_returns_none():
    with patch(
        "presence_keeper.power.subprocess.run",
        side_effect=subprocess.TimeoutExpired("powercfg", 10),
    ):
        assert get_sleep_timeout_seconds() is None
    with patch("presence_keeper.power.subprocess.run", side_effect=FileNotFoundError()):
        assert get_sleep_timeout_seconds() is None


def test_clamp_caps_max_below_sleep_timeout():
    low, high = clamp_wait_bounds(timedelta(seconds=60), timedelta(seconds=240), 120)

    assert high == timedelta(seconds=115)
    assert low == timedelta(seconds=60)


def test_clamp_pulls_min_down_with_max():
    low, high = clamp_wait_bounds(timedelta(seconds=200), timedelta(seconds=240), 60)

    assert high == timedelta(seconds=55)
    assert low == high


def test_clamp_leaves_bounds_without_timeout():
    bounds = (timedelta(seconds=60), timedelta(seconds=240))

    assert clamp_wait_bounds(*bounds, None) == bounds
    assert clamp_wait_bounds(*bounds, 0) == bounds
    assert clamp_wait_bounds(*bounds, 3600) == bounds


def test_ac_power_defaults_to_true_without_battery():
    with patch("presence_keeper.power.psutil.sensors_battery", return_value=None):
        assert is_on_ac_power() is True
    battery = Mock(power_plugged=False)
    with patch("presence_keeper.power.psutil.sensors_battery", return_value=battery):
        assert is_on_ac_power() is False
    with patch("presence_keeper.power.psutil.sensors_battery", side_effect=RuntimeError("wmi")):
        assert is_on_ac_power() is True
