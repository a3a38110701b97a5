"""
変換済みキャプチャの配送先（クリップボード・ユーザー保存先・内部ストレージ）

【使用方法】
from shotpipe.destinations import copy_to_clipboard, save_to_file, save_to_internal

copy_to_clipboard(invoker, Path("/tmp/shotpipe/Area.png"))

saved = save_to_file(Path("/tmp/shotpipe/Area.png"), "Area.png", "~/Desktop")
if saved is None:
    print("保存先が未設定")

internal = save_to_internal(Path("/tmp/shotpipe/Area.png"), "Area.png",
                            Path("~/.shotpipe/captures"), stamp=1700000000000)

【処理内容】
- copy_to_clipboard: osascript で画像をクリップボードに配置
- save_to_file: ユーザー保存先へコピー。未設定なら None、ディレクトリが存在しなければ
  ConfigurationError（作成はしない）
- save_to_internal: 履歴用に内部ストレージへコピー（一時ディレクトリの掃除後も残る）
- OSError は errno で PermissionDenied / DiskFull に分類

【依存】
shutil, pathlib, shotpipe.errors, shotpipe.process_invoker
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from shotpipe.errors import ConfigurationError, DeliveryError, from_os_error
from shotpipe.process_invoker import ProcessInvoker

logger = logging.getLogger(__name__)


def copy_to_clipboard(invoker: ProcessInvoker, filepath: Path) -> None:
    filepath = Path(filepath)
    if not filepath.exists():
        raise DeliveryError(f"File not found: {filepath}")
    invoker.set_clipboard_image(filepath)


def save_to_file(filepath: Path, filename: str, save_location: str) -> Optional[Path]:
    filepath = Path(filepath)
    if not filepath.exists():
        raise DeliveryError(f"Source file not found: {filepath}")

    if not save_location:
        return None

    location = Path(save_location).expanduser()
    if not location.is_dir():
        raise ConfigurationError(f"Save location does not exist: {location}")

    user_path = location / filename
    try:
        shutil.copyfile(filepath, user_path)
    except OSError as e:
        logger.error("ファイル保存失敗: %s", e)
        raise from_os_error("save", e) from e
    return user_path


def save_to_internal(filepath: Path, filename: str, captures_dir: Path, stamp: int) -> Path:
    filepath = Path(filepath)
    if not filepath.exists():
        raise DeliveryError(f"Temporary file not found: {filepath}")

    captures_dir = Path(captures_dir)
    # 同名ファイルで過去の履歴を上書きしないようスタンプを付ける
    internal_path = captures_dir / f"{stamp}_{filename}"
    try:
        captures_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(filepath, internal_path)
    except OSError as e:
        logger.error("内部ストレージへの保存失敗: %s", e)
        raise from_os_error("history", e) from e
    return internal_path
