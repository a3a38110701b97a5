"""
配送前のプレビュー確認ステージ

【使用方法】
from shotpipe.preview import ConsolePreview, describe_capture, to_data_url

info = describe_capture(result)
# => CapturePreview(filename="Area.png", mode="area", size_kb=120, width=800, height=600,
#                   mime_type="image/png")

url = to_data_url(Path(result.filepath))   # "data:image/png;base64,..."

# パイプラインの preview 引数に渡す（Destination か None を返す）
pipeline.run(CaptureMode.AREA, preview=ConsolePreview())

【処理内容】
1. Pillow で画像ヘッダから幅・高さを取得（読めなければ None）
2. ファイルサイズ（KB）と MIME タイプを付与
3. ConsolePreview: 情報を表示して c(コピー) / s(保存) / b(両方) / x(破棄) を選択させる
   x または空入力 → None（ユーザーキャンセル、パイプラインは一時ファイルを削除して終了）
※ パイプライン内で同期的に呼ばれるため、一時ファイルの存在期間内にのみ実行される

【依存】
Pillow, base64, pathlib
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from shotpipe.models import CaptureResult, Destination

logger = logging.getLogger(__name__)

_MIME_BY_EXT = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


@dataclass
class CapturePreview:
    filename: str
    mode: str
    size_kb: int
    width: Optional[int]
    height: Optional[int]
    mime_type: str

    @property
    def dimensions(self) -> str:
        if self.width is None or self.height is None:
            return "-"
        return f"{self.width} x {self.height}"


def mime_type_for(path: Path) -> str:
    return _MIME_BY_EXT.get(Path(path).suffix.lstrip(".").lower(), "image/png")


def image_dimensions(path: Path) -> Optional[Tuple[int, int]]:
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, UnidentifiedImageError) as e:
        logger.warning("画像サイズ取得失敗 %s: %s", path, e)
        return None


def describe_capture(result: CaptureResult) -> CapturePreview:
    path = Path(result.filepath)
    dims = image_dimensions(path)
    return CapturePreview(
        filename=result.filename,
        mode=result.mode.value,
        size_kb=round(path.stat().st_size / 1024),
        width=dims[0] if dims else None,
        height=dims[1] if dims else None,
        mime_type=mime_type_for(path),
    )


def to_data_url(path: Path) -> str:
    encoded = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    return f"data:{mime_type_for(path)};base64,{encoded}"


class ConsolePreview:
    """コンソールで配送先を選ばせるプレビュー"""

    CHOICES = {
        "c": Destination.CLIPBOARD,
        "s": Destination.FILE,
        "b": Destination.BOTH,
    }

    def __init__(self, input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print):
        self._input = input_fn
        self._output = output_fn

    def __call__(self, result: CaptureResult) -> Optional[Destination]:
        info = describe_capture(result)
        self._output(f"  File : {info.filename}")
        self._output(f"  Mode : {info.mode}")
        self._output(f"  Size : {info.size_kb} KB ({info.dimensions})")
        while True:
            answer = self._input("[c]opy / [s]ave / [b]oth / e[x]it: ").strip().lower()
            if not answer or answer[:1] == "x":
                return None
            if answer[:1] in self.CHOICES:
                return self.CHOICES[answer[:1]]
            self._output(f"  不明な入力です: {answer}")
