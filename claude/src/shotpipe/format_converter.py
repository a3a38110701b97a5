"""
撮影した PNG を目的のフォーマットへ変換するモジュール

【使用方法】
from shotpipe.format_converter import FormatConverter
from shotpipe.models import FormatSpec, ImageFormat

converter = FormatConverter(invoker)
final = converter.convert(Path("/tmp/shotpipe/temp_1.png"), FormatSpec(ImageFormat.WEBP, 80),
                          Path("/tmp/shotpipe/Screenshot.webp"))

【処理内容】
1. png: そのままコピー（同一パスなら何もしない）
2. jpeg / webp: sips で品質付き変換
3. 失敗時は途中まで書かれた出力ファイルを削除して例外を再送出
   （元の PNG の削除は呼び出し側の責務）
4. 終了コード0でも出力ファイルがなければ ToolFailure

【依存】
shutil, pathlib, shotpipe.process_invoker
"""

import logging
import shutil
from pathlib import Path

from shotpipe.errors import ToolFailure, from_os_error
from shotpipe.models import FormatSpec
from shotpipe.process_invoker import ProcessInvoker

logger = logging.getLogger(__name__)


class FormatConverter:
    def __init__(self, invoker: ProcessInvoker):
        self._invoker = invoker

    def convert(self, source: Path, spec: FormatSpec, destination: Path) -> Path:
        source = Path(source)
        destination = Path(destination)

        if not spec.needs_conversion:
            if source.resolve() != destination.resolve():
                try:
                    shutil.copyfile(source, destination)
                except OSError as e:
                    self._discard(destination)
                    raise from_os_error("copy", e) from e
            return destination

        try:
            self._invoker.convert(source, destination, spec.format, spec.quality)
        except Exception:
            self._discard(destination)
            raise

        if not destination.exists():
            raise ToolFailure("sips", 0, f"Image format conversion produced no output: {destination}")

        logger.debug("変換完了: %s -> %s (%s, q=%d)", source.name, destination.name,
                     spec.format.value, spec.quality)
        return destination

    def _discard(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("変換途中ファイルの削除失敗 %s: %s", path, e)
