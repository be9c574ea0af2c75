import random
from unittest.mock import Mock, patch

import pytest

from presence_keeper.actions import (
    ARGUMENT_METHODS,
    ActionInvoker,
    KeepAliveMethod,
    open_page,
    run_command,
)
from presence_keeper.errors import ActionError, UnsupportedMethodError


def _invoker(rng=None):
    handlers = {method: Mock(name=method.value) for method in KeepAliveMethod if method is not KeepAliveMethod.RANDOM}
    return ActionInvoker(handlers, rng=rng or random.Random(3)), handlers


def test_parse_is_case_insensitive():
    assert KeepAliveMethod.parse("keypress") is KeepAliveMethod.KEY_PRESS
    assert KeepAliveMethod.parse(" OpenPage ") is KeepAliveMethod.OPEN_PAGE


def test_unknown_method_raises():
    invoker, _ = _invoker()

    with pytest.raises(UnsupportedMethodError):
        invoker.invoke("Teleport")


def test_invoke_dispatches_to_handler_with_argument():
    invoker, handlers = _invoker()

    method = invoker.invoke("OpenPage", "https://example.org")

    assert method is KeepAliveMethod.OPEN_PAGE
    handlers[KeepAliveMethod.OPEN_PAGE].assert_called_once_with("https://example.org")


def test_random_without_argument_only_picks_argumentless_methods():
    invoker, _ = _invoker()

    picks = {invoker.resolve("Random", None) for _ in range(50)}

    assert picks == {KeepAliveMethod.KEY_PRESS, KeepAliveMethod.MOUSE_MOVE}


def test_random_with_argument_can_pick_any_concrete_method():
    invoker, _ = _invoker()

    picks = {invoker.resolve("Random", "notepad.exe") for _ in range(200)}

    assert KeepAliveMethod.RANDOM not in picks
    assert picks & ARGUMENT_METHODS
    assert len(picks) == 5


def test_open_page_requires_url():
    with pytest.raises(ActionError):
        open_page(None)
    with patch("presence_keeper.actions.webbrowser.open", return_value=True) as opener:
        open_page("https://example.org")
    opener.assert_called_once_with("https://example.org")


def test_run_command_reports_failure():
    failed = Mock(returncode=2, stderr="bad\n")
    with patch("presence_keeper.actions.subprocess.run", return_value=failed):
        with pytest.raises(ActionError):
            run_command("exit 2")


def test_random_does_not_hand_url_to_key_press():
    calls = []

    def key_press(argument):
        calls.append(argument)
        # press_key parses its argument as a virtual-key code.
        if argument:
            int(argument, 0)

    handlers = {
        KeepAliveMethod.KEY_PRESS: key_press,
        KeepAliveMethod.OPEN_PAGE: Mock(name="OpenPage"),
    }
    invoker = ActionInvoker(handlers, rng=random.Random(0))

    methods = {invoker.invoke("Random", "https://example.org") for _ in range(40)}

    assert KeepAliveMethod.KEY_PRESS in methods
    assert calls and all(argument is None for argument in calls)
    handlers[KeepAliveMethod.OPEN_PAGE].assert_called_with("https://example.org")


def test_explicit_key_press_keeps_its_argument():
    invoker, handlers = _invoker()

    invoker.invoke("KeyPress", "0x7E")

    handlers[KeepAliveMethod.KEY_PRESS].assert_called_once_with("0x7E")
