"""Format converter tests."""

import pytest

from shotpipe.errors import ToolFailure
from shotpipe.format_converter import FormatConverter
from shotpipe.models import FormatSpec, ImageFormat

from conftest import write_png


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "temp_1.png"
    write_png(path)
    return path


def test_png_is_identity_copy(invoker, fake_tools, source, tmp_path):
    dest = tmp_path / "Area.png"
    FormatConverter(invoker).convert(source, FormatSpec(ImageFormat.PNG), dest)
    assert dest.read_bytes() == source.read_bytes()
    assert fake_tools.calls == []


def test_png_same_path_is_noop(invoker, source):
    assert FormatConverter(invoker).convert(source, FormatSpec(ImageFormat.PNG), source) == source


@pytest.mark.parametrize("fmt,quality", [(ImageFormat.JPEG, 60), (ImageFormat.WEBP, 90)])
def test_non_png_invokes_sips_with_quality(invoker, fake_tools, source, tmp_path, fmt, quality):
    dest = tmp_path / f"Area.{fmt.extension}"
    FormatConverter(invoker).convert(source, FormatSpec(fmt, quality), dest)
    assert dest.exists()
    args = fake_tools.calls[-1]
    assert args[args.index("format") + 1] == fmt.value
    assert args[args.index("formatOptions") + 1] == str(quality)


def test_failure_removes_partial_output(invoker, fake_tools, source, tmp_path):
    fake_tools.convert = "partial"
    dest = tmp_path / "Area.jpg"
    with pytest.raises(ToolFailure):
        FormatConverter(invoker).convert(source, FormatSpec(ImageFormat.JPEG, 85), dest)
    assert not dest.exists()
    assert source.exists()


def test_missing_output_after_success_is_failure(invoker, fake_tools, source, tmp_path):
    fake_tools.convert = "no_output"
    with pytest.raises(ToolFailure):
        FormatConverter(invoker).convert(source, FormatSpec(ImageFormat.WEBP, 85), tmp_path / "Area.webp")
