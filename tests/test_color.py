import pytest

from imtools.zlog.color import Color, level_color
from imtools.zlog.logger import Level


def test_add_red():
    assert Color.RED.add("x") == "\x1b[31mx\x1b[0m"


def test_codes_run_from_black_to_white():
    assert Color(30) is Color.BLACK
    assert Color(37) is Color.WHITE
    assert Color(30).add("") == "\x1b[30m\x1b[0m"
    assert Color(37).add("") == "\x1b[37m\x1b[0m"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("BLACK", "\x1b[30mabc\x1b[0m"),
        ("RED", "\x1b[31mabc\x1b[0m"),
        ("GREEN", "\x1b[32mabc\x1b[0m"),
        ("YELLOW", "\x1b[33mabc\x1b[0m"),
        ("BLUE", "\x1b[34mabc\x1b[0m"),
        ("MAGENTA", "\x1b[35mabc\x1b[0m"),
        ("CYAN", "\x1b[36mabc\x1b[0m"),
        ("WHITE", "\x1b[37mabc\x1b[0m"),
    ],
)
def test_add_wraps_text(name, expected):
    assert Color[name].add("abc") == expected


@pytest.mark.parametrize(
    "level, color",
    [
        ("debug", Color.WHITE),
        ("info", Color.BLUE),
        ("warn", Color.YELLOW),
        ("error", Color.RED),
        ("dpanic", Color.RED),
        ("panic", Color.RED),
        ("fatal", Color.RED),
    ],
)
def test_level_color_by_name(level, color):
    assert level_color(level) is color
    assert level_color(level.upper()) is color


def test_level_color_by_enum():
    assert level_color(Level.WARN) is Color.YELLOW
    assert level_color(Level.DEBUG) is Color.WHITE


def test_level_color_unknown():
    assert level_color("verbose") is None
    assert level_color(7) is None