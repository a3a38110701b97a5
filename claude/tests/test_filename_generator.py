"""Filename pattern substitution tests."""

from datetime import datetime

import pytest

from shotpipe.filename_generator import generate_filename
from shotpipe.models import CaptureMode, ImageFormat

NOW = datetime(2024, 1, 15, 9, 5, 7)


def test_mode_and_date_with_jpeg_extension():
    assert generate_filename("area", "{mode}_{date}", "jpeg", now=NOW) == "Area_2024-01-15.jpg"


def test_all_placeholders_substituted():
    name = generate_filename(CaptureMode.FULLSCREEN, "{timestamp}-{time}-{mode}", ImageFormat.PNG, now=NOW)
    expected_ts = str(int(NOW.timestamp() * 1000))
    assert name == f"{expected_ts}-09-05-07-Fullscreen.png"


def test_repeated_placeholders_all_replaced():
    assert generate_filename("window", "{mode}{mode}", "webp", now=NOW) == "WindowWindow.webp"


@pytest.mark.parametrize("pattern", ["shot.png", "shot.PNG", "shot.jpg", "shot.jpeg", "shot.webp"])
def test_existing_extension_is_replaced(pattern):
    assert generate_filename("area", pattern, "jpeg", now=NOW) == "shot.jpg"


def test_only_trailing_extension_is_stripped():
    assert generate_filename("area", "a.png.b", "png", now=NOW) == "a.png.b.png"


def test_misspelled_placeholder_left_literal():
    assert generate_filename("area", "{mdoe}_{date}", "png", now=NOW) == "{mdoe}_2024-01-15.png"


def test_empty_pattern_uses_default():
    assert generate_filename("area", "", "png", now=NOW) == "Screenshot_2024-01-15_09-05-07.png"


def test_same_instant_is_deterministic():
    first = generate_filename("window", "{mode}_{date}_{time}_{timestamp}", "webp", now=NOW)
    second = generate_filename("window", "{mode}_{date}_{time}_{timestamp}", "webp", now=NOW)
    assert first == second
    assert first.count(".webp") == 1


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        generate_filename("area", "x", "gif", now=NOW)
