"""
キャプチャ設定管理モジュール

【使用方法】
from shotpipe.config import CaptureConfig

# .env + 環境変数からロード
config = CaptureConfig.from_env()

# デフォルト値で生成（テスト・ホスト環境なし）
config = CaptureConfig()

# 個別指定
config = CaptureConfig(image_format="jpeg", jpeg_quality=70, save_location="~/Desktop")

spec = config.format_spec()      # => FormatSpec(format=ImageFormat.JPEG, quality=70)
errors = config.validate()       # => [] なら正常

【処理内容】
1. python-dotenv で .env ファイルを読み込み
2. 環境変数 SHOTPIPE_* から設定値を取得（未設定ならデフォルト値）
3. CaptureConfig dataclass としてパイプラインに明示的に渡す（グローバル参照しない）

【環境変数】
SHOTPIPE_SAVE_LOCATION: 保存先ディレクトリ（空なら未設定）
SHOTPIPE_PLAY_SOUND: シャッター音 (true/false)
SHOTPIPE_FILENAME_PATTERN: ファイル名パターン ({mode} {date} {time} {timestamp})
SHOTPIPE_IMAGE_FORMAT: png / jpeg / webp
SHOTPIPE_JPEG_QUALITY / SHOTPIPE_WEBP_QUALITY: 0〜100
SHOTPIPE_DEFAULT_ACTION: copy / save / both
SHOTPIPE_SHOW_PREVIEW: プレビュー確認を挟むか
SHOTPIPE_TIMER_DELAY: セルフタイマー秒数
SHOTPIPE_TEMP_DIR / SHOTPIPE_CAPTURES_DIR / SHOTPIPE_HISTORY_PATH / SHOTPIPE_LOG_DIR

【依存】
python-dotenv, pathlib
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from shotpipe.filename_generator import DEFAULT_PATTERN
from shotpipe.models import Destination, FormatSpec, ImageFormat

DEFAULT_QUALITY = 85
DEFAULT_TIMER_DELAY = 3

_APP_DIR = Path.home() / ".shotpipe"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_quality(value) -> int:
    try:
        quality = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_QUALITY
    return max(0, min(100, quality))


def _parse_delay(value) -> int:
    try:
        delay = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_TIMER_DELAY
    # 負の値は validate() で報告する
    return delay


@dataclass
class CaptureConfig:
    save_location: str = ""
    play_sound: bool = False
    filename_pattern: str = DEFAULT_PATTERN
    image_format: str = "png"
    jpeg_quality: int = DEFAULT_QUALITY
    webp_quality: int = DEFAULT_QUALITY
    default_action: str = "copy"
    show_preview: bool = False
    timer_delay: int = DEFAULT_TIMER_DELAY

    # ディレクトリ
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "shotpipe")
    captures_dir: Path = _APP_DIR / "captures"
    history_path: Path = _APP_DIR / "history.json"
    log_dir: Path = _APP_DIR / "logs"

    # 外部ツール
    screencapture_bin: str = "/usr/sbin/screencapture"
    sips_bin: str = "sips"
    osascript_bin: str = "osascript"
    open_bin: str = "open"

    def __post_init__(self):
        self.temp_dir = Path(self.temp_dir)
        self.captures_dir = Path(self.captures_dir)
        self.history_path = Path(self.history_path)
        self.log_dir = Path(self.log_dir)

    @classmethod
    def from_env(cls) -> "CaptureConfig":
        # プロジェクトルートの .env を明示的に探す
        src_dir = Path(__file__).resolve().parent.parent
        for candidate in [src_dir / ".env", src_dir.parent / ".env", src_dir.parent.parent / ".env"]:
            if candidate.exists():
                load_dotenv(candidate)
                break
        else:
            load_dotenv()

        defaults = cls()
        return cls(
            save_location=os.getenv("SHOTPIPE_SAVE_LOCATION", ""),
            play_sound=_env_bool("SHOTPIPE_PLAY_SOUND", False),
            filename_pattern=os.getenv("SHOTPIPE_FILENAME_PATTERN", DEFAULT_PATTERN),
            image_format=os.getenv("SHOTPIPE_IMAGE_FORMAT", "png"),
            jpeg_quality=_parse_quality(os.getenv("SHOTPIPE_JPEG_QUALITY", str(DEFAULT_QUALITY))),
            webp_quality=_parse_quality(os.getenv("SHOTPIPE_WEBP_QUALITY", str(DEFAULT_QUALITY))),
            default_action=os.getenv("SHOTPIPE_DEFAULT_ACTION", "copy"),
            show_preview=_env_bool("SHOTPIPE_SHOW_PREVIEW", False),
            timer_delay=_parse_delay(os.getenv("SHOTPIPE_TIMER_DELAY", str(DEFAULT_TIMER_DELAY))),
            temp_dir=Path(os.getenv("SHOTPIPE_TEMP_DIR", str(defaults.temp_dir))).expanduser(),
            captures_dir=Path(os.getenv("SHOTPIPE_CAPTURES_DIR", str(defaults.captures_dir))).expanduser(),
            history_path=Path(os.getenv("SHOTPIPE_HISTORY_PATH", str(defaults.history_path))).expanduser(),
            log_dir=Path(os.getenv("SHOTPIPE_LOG_DIR", str(defaults.log_dir))).expanduser(),
            screencapture_bin=os.getenv("SHOTPIPE_SCREENCAPTURE_BIN", defaults.screencapture_bin),
            sips_bin=os.getenv("SHOTPIPE_SIPS_BIN", defaults.sips_bin),
            osascript_bin=os.getenv("SHOTPIPE_OSASCRIPT_BIN", defaults.osascript_bin),
        )

    @property
    def format(self) -> ImageFormat:
        return ImageFormat((self.image_format or "png").lower())

    @property
    def destination(self) -> Destination:
        return Destination.parse(self.default_action or "copy")

    def format_spec(self) -> FormatSpec:
        """撮影1回分の FormatSpec を生成（png は品質を無視）"""
        fmt = self.format
        if fmt is ImageFormat.JPEG:
            return FormatSpec(fmt, _parse_quality(self.jpeg_quality))
        if fmt is ImageFormat.WEBP:
            return FormatSpec(fmt, _parse_quality(self.webp_quality))
        return FormatSpec(fmt, DEFAULT_QUALITY)

    def resolved_save_location(self) -> str:
        """~ を展開した保存先。未設定なら空文字"""
        if not self.save_location:
            return ""
        return str(Path(self.save_location).expanduser())

    def validate(self) -> List[str]:
        """設定のバリデーション。エラーメッセージのリストを返す（空なら正常）"""
        errors = []
        try:
            self.format
        except ValueError:
            errors.append(f"image_format は png / jpeg / webp のいずれか: {self.image_format}")
        try:
            self.destination
        except ValueError:
            errors.append(f"default_action は copy / save / both のいずれか: {self.default_action}")
        if self.timer_delay < 0:
            errors.append("timer_delay は0以上である必要があります")

        temp = self.temp_dir.expanduser().resolve()
        captures = self.captures_dir.expanduser().resolve()
        if captures == temp or temp in captures.parents:
            errors.append("captures_dir は temp_dir の外に置く必要があります")
        return errors
