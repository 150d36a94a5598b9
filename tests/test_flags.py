from enum import Enum, IntFlag

import pytest

from opgkit.flags import has_flag, reset_flag, set_flag, to_underlying


class Color(IntFlag):
    RED = 1
    GREEN = 2
    BLUE = 4


class Mode(Enum):
    FAST = 8
    SLOW = 16


def test_to_underlying_returns_member_value():
    assert to_underlying(Color.GREEN) == 2
    assert to_underlying(Mode.SLOW) == 16


def test_to_underlying_passes_plain_ints():
    assert to_underlying(7) == 7


@pytest.mark.parametrize("flag", list(Color))
def test_set_then_has(flag):
    value = set_flag(0, flag)
    assert has_flag(value, flag)
    assert value == flag.value


def test_has_flag_false_when_missing():
    value = Color.RED | Color.BLUE
    assert not has_flag(value, Color.GREEN)
    assert has_flag(value, Color.BLUE)


def test_reset_flag_clears_only_that_bit():
    value = set_flag(set_flag(0, Color.RED), Color.BLUE)
    cleared = reset_flag(value, Color.RED)
    assert not has_flag(cleared, Color.RED)
    assert has_flag(cleared, Color.BLUE)
    assert cleared == Color.BLUE.value


def test_reset_flag_on_missing_bit_is_identity():
    value = set_flag(0, Color.GREEN)
    assert reset_flag(value, Color.RED) == value


def test_flags_work_with_plain_enum():
    value = set_flag(Mode.FAST, Mode.SLOW)
    assert has_flag(value, Mode.FAST)
    assert has_flag(value, Mode.SLOW)
    assert reset_flag(value, Mode.FAST) == Mode.SLOW.value