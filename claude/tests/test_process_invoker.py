"""External process invoker tests (screencapture / sips / osascript)."""

import logging
from pathlib import Path

import pytest

from shotpipe.errors import DiskFull, PermissionDenied, ToolFailure, ToolNotFound
from shotpipe.models import CaptureMode, CaptureRequest


@pytest.mark.parametrize("mode,flags", [
    (CaptureMode.AREA, ["-i"]),
    (CaptureMode.WINDOW, ["-i", "-w"]),
    (CaptureMode.FULLSCREEN, []),
])
def test_capture_args_per_mode(invoker, config, mode, flags):
    args = invoker.build_capture_args(CaptureRequest(mode, sound_enabled=True), Path("/tmp/out.png"))
    assert args == [config.screencapture_bin] + flags + ["/tmp/out.png"]


def test_capture_args_mute_and_delay_before_output(invoker):
    args = invoker.build_capture_args(
        CaptureRequest(CaptureMode.AREA, delay_seconds=5, sound_enabled=False), Path("/tmp/out.png"),
    )
    assert args[1:] == ["-i", "-x", "-T5", "/tmp/out.png"]


def test_zero_delay_adds_no_timer_flag(invoker):
    args = invoker.build_capture_args(CaptureRequest(CaptureMode.FULLSCREEN, delay_seconds=0), Path("o.png"))
    assert not any(a.startswith("-T") for a in args)


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        CaptureRequest(CaptureMode.AREA, delay_seconds=-1)


def test_capture_success(invoker, tmp_path):
    out = tmp_path / "raw.png"
    assert invoker.capture(CaptureRequest(CaptureMode.AREA), out) is True
    assert out.exists()


@pytest.mark.parametrize("behavior", ["cancel", "cancel_exit0"])
def test_capture_cancel_is_not_an_error(invoker, fake_tools, tmp_path, behavior):
    fake_tools.capture = behavior
    assert invoker.capture(CaptureRequest(CaptureMode.WINDOW), tmp_path / "raw.png") is False


@pytest.mark.parametrize("stderr,exc_class", [
    ("could not create image from display: screen recording not permitted", PermissionDenied),
    ("write failed: ENOSPC no space left on device", DiskFull),
    ("something odd happened", ToolFailure),
])
def test_capture_failures_are_classified(invoker, fake_tools, tmp_path, stderr, exc_class):
    fake_tools.capture = (2, stderr)
    with pytest.raises(exc_class) as info:
        invoker.capture(CaptureRequest(CaptureMode.AREA), tmp_path / "raw.png")
    assert info.value.returncode == 2
    assert info.value.diagnostic == stderr


def test_user_message_truncated_but_diagnostic_kept(invoker, fake_tools, tmp_path):
    long_text = "x" * 500
    fake_tools.capture = (3, long_text)
    with pytest.raises(ToolFailure) as info:
        invoker.capture(CaptureRequest(CaptureMode.AREA), tmp_path / "raw.png")
    assert len(info.value.user_message) == 100
    assert info.value.diagnostic == long_text


def test_spawn_failure_is_tool_not_found(invoker, fake_tools, tmp_path):
    fake_tools.missing_tools.add("screencapture")
    with pytest.raises(ToolNotFound):
        invoker.capture(CaptureRequest(CaptureMode.AREA), tmp_path / "raw.png")


def test_spawn_failure_logs_full_diagnostic(invoker, fake_tools, tmp_path, caplog):
    fake_tools.missing_tools.add("screencapture")
    with caplog.at_level(logging.ERROR, logger="shotpipe.process_invoker"):
        with pytest.raises(ToolNotFound):
            invoker.capture(CaptureRequest(CaptureMode.AREA), tmp_path / "raw.png")
    messages = [r.getMessage() for r in caplog.records if r.levelno >= logging.ERROR]
    assert any("No such file or directory" in m for m in messages)
    assert any("screencapture" in m and str(tmp_path / "raw.png") in m for m in messages)


def test_convert_args(invoker, fake_tools, tmp_path):
    invoker.convert(tmp_path / "in.png", tmp_path / "out.jpg", "jpeg", 70)
    assert fake_tools.calls[-1] == [
        "sips", "-s", "format", "jpeg", "-s", "formatOptions", "70",
        str(tmp_path / "in.png"), "--out", str(tmp_path / "out.jpg"),
    ]


def test_clipboard_script_reads_tiff_picture(invoker, fake_tools, tmp_path):
    invoker.set_clipboard_image(tmp_path / "a b.png")
    args = fake_tools.calls[-1]
    assert args[:2] == ["osascript", "-e"]
    assert f'POSIX file "{tmp_path / "a b.png"}"' in args[2]
    assert "as TIFF picture" in args[2]


def test_open_and_reveal(invoker, fake_tools):
    invoker.open_file(Path("/x/a.png"))
    invoker.open_file(Path("/x/a.png"), reveal=True)
    assert fake_tools.calls == [["open", "/x/a.png"], ["open", "-R", "/x/a.png"]]
