"""
キャプチャパイプラインの例外定義と外部ツール失敗の分類

【使用方法】
from shotpipe.errors import classify_failure, ExternalToolFailure

exc_class = classify_failure("could not create image from display: screen recording")
raise exc_class("screencapture", 2, stderr_text)

try:
    ...
except ExternalToolFailure as e:
    print(e.user_message)   # 100文字に切り詰めた表示用テキスト
    logger.error(e.diagnostic)  # 全文

【処理内容】
- ExternalToolFailure: screencapture / sips / osascript の異常終了
  （PermissionDenied / DiskFull / ToolNotFound / ToolFailure に分類）
- ConfigurationError: 保存先ディレクトリが存在しない等の設定不備
- DeliveryError: クリップボード・保存処理の失敗（ツール起因以外）
- ユーザーキャンセルは例外にしない（None で返す）
- 保存先未設定は DestinationStatus.NOT_CONFIGURED で表現する（例外にしない）

【依存】
Python標準ライブラリのみ (errno)
"""

import errno
from typing import Optional, Type

USER_MESSAGE_LIMIT = 100


class ShotpipeError(Exception):
    """Base exception for shotpipe."""
    pass


class ConfigurationError(ShotpipeError):
    """Configuration error (missing save directory, invalid settings)."""
    pass


class DeliveryError(ShotpipeError):
    """Clipboard or file delivery error."""
    pass


class ExternalToolFailure(ShotpipeError):
    """An external utility exited abnormally or could not be spawned."""

    title = "Screenshot capture failed"

    def __init__(self, tool: str, returncode: Optional[int], diagnostic: str):
        self.tool = tool
        self.returncode = returncode
        self.diagnostic = diagnostic or ""
        super().__init__(f"{tool} failed (exit {returncode}): {self.diagnostic}")

    @property
    def user_message(self) -> str:
        return self.diagnostic.strip()[:USER_MESSAGE_LIMIT]


class ToolFailure(ExternalToolFailure):
    pass


class PermissionDenied(ExternalToolFailure):
    title = "Screen recording permission required"


class DiskFull(ExternalToolFailure):
    title = "Disk full"


class ToolNotFound(ExternalToolFailure):
    title = "Command not found"


# 判定順が重要: "permission" を含む not found メッセージは権限扱い
_PATTERNS = (
    (PermissionDenied, ("screen recording", "permission", "not permitted", "eacces", "eperm")),
    (DiskFull, ("enospc", "no space left", "disk full", "not enough space")),
    (ToolNotFound, ("command not found", "not found", "enoent", "no such file or directory")),
)


def classify_failure(text: str) -> Type[ExternalToolFailure]:
    """診断テキストの既知のキーワードから例外クラスを選ぶ"""
    lowered = (text or "").lower()
    for exc_class, needles in _PATTERNS:
        if any(n in lowered for n in needles):
            return exc_class
    return ToolFailure


def from_os_error(tool: str, error: OSError) -> ExternalToolFailure:
    """ファイル操作の OSError を errno で分類する"""
    if error.errno in (errno.EACCES, errno.EPERM):
        return PermissionDenied(tool, None, f"Permission denied: {error}")
    if error.errno == errno.ENOSPC:
        return DiskFull(tool, None, f"Disk full: {error}")
    return ToolFailure(tool, None, str(error))
