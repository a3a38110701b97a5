"""
外部コマンド（screencapture / sips / osascript / open）の呼び出しモジュール

【使用方法】
from shotpipe.config import CaptureConfig
from shotpipe.models import CaptureMode, CaptureRequest
from shotpipe.process_invoker import ProcessInvoker

invoker = ProcessInvoker(CaptureConfig())

# 撮影（False ならユーザーキャンセル）
produced = invoker.capture(CaptureRequest(CaptureMode.AREA), Path("/tmp/shotpipe/temp_1.png"))

# フォーマット変換
invoker.convert(Path("in.png"), Path("out.jpg"), "jpeg", 85)

# クリップボードへ画像コピー
invoker.set_clipboard_image(Path("out.jpg"))

# テスト時は runner を差し替える（subprocess.run 互換）
invoker = ProcessInvoker(config, runner=fake_run)

【処理内容】
1. CaptureRequest から screencapture の引数を組み立て
   area: -i / window: -i -w / fullscreen: なし、音なし: -x、遅延: -T<秒>
2. subprocess.run で実行し終了まで待機（タイムアウトなし）
3. 終了コード1 かつ出力ファイルなし → ユーザーキャンセル（エラーではない）
4. それ以外の異常終了・起動失敗 → 診断テキストを分類して ExternalToolFailure を送出
   （全文はログ、ユーザー表示は100文字まで）
5. 引数はリストで渡し、シェル文字列は組み立てない

【依存】
subprocess, pathlib, shotpipe.errors
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from shotpipe.config import CaptureConfig
from shotpipe.errors import ExternalToolFailure, ToolNotFound, classify_failure
from shotpipe.models import CaptureMode, CaptureRequest, ImageFormat

logger = logging.getLogger(__name__)

CANCELLED_EXIT_CODE = 1


@dataclass
class ProcessResult:
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def diagnostic(self) -> str:
        return (self.stderr or self.stdout or "").strip()


class ProcessInvoker:
    def __init__(self, config: CaptureConfig, runner: Optional[Callable] = None):
        self._config = config
        self._runner = runner or subprocess.run

    def run(self, args: List[str]) -> ProcessResult:
        """コマンド実行。起動失敗は ExternalToolFailure に変換する"""
        tool = Path(args[0]).name
        logger.debug("実行: %s", " ".join(args))
        try:
            completed = self._runner(args, capture_output=True, text=True)
        except FileNotFoundError as e:
            exc = ToolNotFound(tool, None, f"{tool} command not found: {e}")
            self._log_spawn_failure(exc, args)
            raise exc from e
        except OSError as e:
            exc = classify_failure(str(e))(tool, None, str(e))
            self._log_spawn_failure(exc, args)
            raise exc from e

        result = ProcessResult(
            args=list(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.stderr:
            logger.debug("%s stderr: %s", tool, result.stderr.strip())
        return result

    @staticmethod
    def _log_spawn_failure(exc: ExternalToolFailure, args: List[str]) -> None:
        logger.error("%s 起動失敗: %s", exc.tool, exc.diagnostic)
        logger.error("コマンド: %s", " ".join(args))

    def _fail(self, result: ProcessResult) -> ExternalToolFailure:
        tool = Path(result.args[0]).name
        diagnostic = result.diagnostic or f"{tool} exited with code {result.returncode}"
        exc = classify_failure(diagnostic)(tool, result.returncode, diagnostic)
        logger.error("%s 失敗 (exit=%s): %s", tool, result.returncode, diagnostic)
        logger.error("コマンド: %s", " ".join(result.args))
        return exc

    # ===== screencapture =====

    def build_capture_args(self, request: CaptureRequest, output_path: Path) -> List[str]:
        args = [self._config.screencapture_bin]
        if request.mode is CaptureMode.AREA:
            args.append("-i")
        elif request.mode is CaptureMode.WINDOW:
            args.extend(["-i", "-w"])

        if not request.sound_enabled:
            args.append("-x")

        # 遅延フラグは出力パスより前
        if request.has_delay:
            args.append(f"-T{request.delay_seconds}")

        args.append(str(output_path))
        return args

    def capture(self, request: CaptureRequest, output_path: Path) -> bool:
        """撮影して output_path に PNG を生成。キャンセル時は False"""
        result = self.run(self.build_capture_args(request, output_path))
        produced = Path(output_path).exists()

        if result.returncode == 0:
            if not produced:
                logger.info("撮影キャンセル（出力ファイルなし）: mode=%s", request.mode.value)
            return produced

        if result.returncode == CANCELLED_EXIT_CODE and not produced:
            logger.info("撮影キャンセル (exit=1): mode=%s", request.mode.value)
            return False

        raise self._fail(result)

    # ===== sips =====

    def convert(self, input_path: Path, output_path: Path, image_format, quality: int) -> None:
        fmt = ImageFormat(image_format)
        args = [
            self._config.sips_bin,
            "-s", "format", fmt.value,
            "-s", "formatOptions", str(quality),
            str(input_path),
            "--out", str(output_path),
        ]
        result = self.run(args)
        if result.returncode != 0:
            raise self._fail(result)

    # ===== osascript / open =====

    def set_clipboard_image(self, path: Path) -> None:
        script = f'set the clipboard to (read (POSIX file "{path}") as TIFF picture)'
        result = self.run([self._config.osascript_bin, "-e", script])
        if result.returncode != 0:
            raise self._fail(result)

    def open_file(self, path: Path, reveal: bool = False) -> None:
        args = [self._config.open_bin]
        if reveal:
            args.append("-R")
        args.append(str(path))
        result = self.run(args)
        if result.returncode != 0:
            raise self._fail(result)
