"""
shotpipe テスト共通フィクスチャ

screencapture / sips / osascript / open を模擬する FakeTools を subprocess.run の代わりに
ProcessInvoker へ注入し、実際のOSツールを一切起動せずにパイプラインを検証する。
"""

import subprocess
import sys
from pathlib import Path

import pytest
from PIL import Image

# claude/src をパスに追加
SRC_DIR = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from shotpipe.config import CaptureConfig
from shotpipe.delivery_pipeline import DeliveryPipeline
from shotpipe.process_invoker import ProcessInvoker

FIXED_NOW = 1705311000.0  # 2024-01-15 (UTC)


def write_png(path: Path, size=(40, 30)) -> None:
    Image.new("RGB", size, (255, 0, 0)).save(path, format="PNG")


class FakeTools:
    """subprocess.run 互換の模擬ランナー"""

    def __init__(self):
        self.calls = []
        self.capture = "ok"        # "ok" / "cancel" / "cancel_exit0" / (code, stderr)
        self.convert = "ok"        # "ok" / "partial" / "no_output" / (code, stderr)
        self.clipboard = "ok"      # "ok" / (code, stderr)
        self.open = "ok"
        self.missing_tools = set()

    def tools_called(self):
        return [Path(call[0]).name for call in self.calls]

    def __call__(self, args, capture_output=True, text=True):
        args = list(args)
        self.calls.append(args)
        tool = Path(args[0]).name
        if tool in self.missing_tools:
            raise FileNotFoundError(2, "No such file or directory", args[0])

        if tool == "screencapture":
            return self._screencapture(args)
        if tool == "sips":
            return self._sips(args)
        if tool == "osascript":
            return self._result(args, self.clipboard)
        if tool == "open":
            return self._result(args, self.open)
        raise AssertionError(f"unexpected tool: {tool}")

    def _result(self, args, behavior):
        if behavior == "ok":
            return subprocess.CompletedProcess(args, 0, "", "")
        code, stderr = behavior
        return subprocess.CompletedProcess(args, code, "", stderr)

    def _screencapture(self, args):
        output = Path(args[-1])
        if self.capture == "ok":
            write_png(output)
            return subprocess.CompletedProcess(args, 0, "", "")
        if self.capture == "cancel":
            return subprocess.CompletedProcess(args, 1, "", "")
        if self.capture == "cancel_exit0":
            return subprocess.CompletedProcess(args, 0, "", "")
        return self._result(args, self.capture)

    def _sips(self, args):
        output = Path(args[args.index("--out") + 1])
        if self.convert == "ok":
            output.write_bytes(b"converted-image")
            return subprocess.CompletedProcess(args, 0, "", "")
        if self.convert == "partial":
            output.write_bytes(b"half")
            return subprocess.CompletedProcess(args, 13, "", "Error: Unable to render destination image")
        if self.convert == "no_output":
            return subprocess.CompletedProcess(args, 0, "", "")
        return self._result(args, self.convert)


@pytest.fixture
def fake_tools():
    return FakeTools()


@pytest.fixture
def save_dir(tmp_path):
    path = tmp_path / "save"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path, save_dir):
    return CaptureConfig(
        save_location=str(save_dir),
        temp_dir=tmp_path / "tmp" / "shotpipe",
        captures_dir=tmp_path / "support" / "captures",
        history_path=tmp_path / "support" / "history.json",
        log_dir=tmp_path / "logs",
        filename_pattern="{mode}_{date}",
    )


@pytest.fixture
def invoker(config, fake_tools):
    return ProcessInvoker(config, runner=fake_tools)


@pytest.fixture
def make_pipeline(config, fake_tools):
    def _make(**overrides):
        for key, value in overrides.items():
            setattr(config, key, value)
        invoker = ProcessInvoker(config, runner=fake_tools)
        return DeliveryPipeline(config, invoker=invoker, clock=lambda: FIXED_NOW)
    return _make
