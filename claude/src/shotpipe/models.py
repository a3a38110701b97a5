"""
キャプチャパイプライン全体で共有するデータモデル定義

【使用方法】
from shotpipe.models import CaptureMode, CaptureRequest, Destination, FormatSpec, ImageFormat

request = CaptureRequest(mode=CaptureMode.AREA, delay_seconds=3, sound_enabled=False)
spec = FormatSpec(format=ImageFormat.JPEG, quality=85)
dest = Destination.parse("both")   # "copy" / "save" も受け付ける

entry = HistoryEntry(
    id="1700000000000-k3j9a0b",
    filepath="/Users/me/.shotpipe/captures/1700000000000_Screenshot.png",
    filename="Screenshot.png",
    timestamp=1700000000000,
    mode="area",
)

outcome = DeliveryOutcome(destination=Destination.BOTH, filename="Screenshot.png")
outcome.summary()  # => "Copied and saved" / "Copied to clipboard" / ...

【処理内容】
CaptureMode: 撮影モード（範囲選択・ウィンドウ・全画面）
ImageFormat: 出力フォーマット（png / jpeg / webp）と拡張子・MIMEタイプ
Destination: 配送先（クリップボード・ファイル・両方）
CaptureRequest: 1回の撮影要求（永続化しない）
CaptureResult: 変換済み一時ファイル（パイプライン完了後は無効）
FormatSpec: フォーマット + 品質（1回の撮影中は不変）
HistoryEntry: 履歴1件（内部ストレージのファイルを指す）
PipelineState: パイプラインの状態遷移
DestinationStatus / DeliveryOutcome: 配送先ごとの結果とユーザー向けサマリー

【依存】
Python標準ライブラリのみ (dataclasses, enum, typing)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class CaptureMode(str, Enum):
    AREA = "area"
    WINDOW = "window"
    FULLSCREEN = "fullscreen"

    @property
    def label(self) -> str:
        """ファイル名・表示用ラベル（"Area" 等）"""
        return self.value.capitalize()


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else self.value

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"


class Destination(str, Enum):
    CLIPBOARD = "clipboard"
    FILE = "file"
    BOTH = "both"

    @classmethod
    def parse(cls, value: str) -> "Destination":
        """設定値の別名（copy / save）も受け付ける"""
        aliases = {"copy": cls.CLIPBOARD, "save": cls.FILE}
        key = (value or "").strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)

    @property
    def wants_clipboard(self) -> bool:
        return self in (Destination.CLIPBOARD, Destination.BOTH)

    @property
    def wants_file(self) -> bool:
        return self in (Destination.FILE, Destination.BOTH)


class PipelineState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CANCELLED = "cancelled"
    CONVERTING = "converting"
    DELIVERING = "delivering"
    CLEANUP = "cleanup"
    DONE = "done"


class DestinationStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"  # 保存先未設定（エラーではない）
    SKIPPED = "skipped"


@dataclass
class CaptureRequest:
    mode: CaptureMode
    delay_seconds: Optional[int] = None
    sound_enabled: bool = False

    def __post_init__(self):
        self.mode = CaptureMode(self.mode)
        if self.delay_seconds is not None and self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be non-negative: {self.delay_seconds}")

    @property
    def has_delay(self) -> bool:
        return bool(self.delay_seconds and self.delay_seconds > 0)


@dataclass
class CaptureResult:
    filepath: str
    filename: str
    mode: CaptureMode = CaptureMode.AREA


@dataclass(frozen=True)
class FormatSpec:
    format: ImageFormat = ImageFormat.PNG
    quality: int = 85

    @property
    def needs_conversion(self) -> bool:
        return self.format is not ImageFormat.PNG


@dataclass
class HistoryEntry:
    id: str
    filepath: str
    filename: str
    timestamp: int  # epoch millis
    mode: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filepath": self.filepath,
            "filename": self.filename,
            "timestamp": self.timestamp,
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            id=str(d["id"]),
            filepath=str(d.get("filepath", "")),
            filename=str(d.get("filename", "")),
            timestamp=int(d.get("timestamp", 0)),
            mode=str(d.get("mode", CaptureMode.AREA.value)),
        )


@dataclass
class DeliveryOutcome:
    """配送結果。destination ごとの成否とエラーを保持する"""
    destination: Destination
    filename: str
    clipboard: DestinationStatus = DestinationStatus.SKIPPED
    file: DestinationStatus = DestinationStatus.SKIPPED
    errors: Dict[str, Exception] = field(default_factory=dict)
    saved_path: Optional[str] = None
    history_entry: Optional[HistoryEntry] = None

    @property
    def copy_succeeded(self) -> bool:
        return self.clipboard is DestinationStatus.SUCCEEDED

    @property
    def save_succeeded(self) -> bool:
        return self.file is DestinationStatus.SUCCEEDED

    @property
    def any_succeeded(self) -> bool:
        return self.copy_succeeded or self.save_succeeded

    @property
    def all_succeeded(self) -> bool:
        if self.destination is Destination.BOTH:
            return self.copy_succeeded and self.save_succeeded
        if self.destination is Destination.CLIPBOARD:
            return self.copy_succeeded
        return self.save_succeeded

    def summary(self) -> Optional[str]:
        """ユーザー向けメッセージ。全配送先成功時のみ結合形、何も成功しなければ None"""
        if self.destination is Destination.BOTH and self.all_succeeded:
            return "Copied and saved"
        if self.copy_succeeded:
            return "Copied to clipboard"
        if self.save_succeeded:
            return f"Saved to {self.filename}"
        return None
