"""
ファイル名パターンから出力ファイル名を生成するモジュール

【使用方法】
from datetime import datetime
from shotpipe.filename_generator import generate_filename

name = generate_filename("area", "{mode}_{date}", "jpeg", now=datetime(2024, 1, 15, 9, 30, 0))
# => "Area_2024-01-15.jpg"

【処理内容】
1. {mode} {date} {time} {timestamp} を文字列置換（順不同、エスケープなし）
2. パターン末尾に既存の画像拡張子があれば除去（.jpg.jpg の二重拡張子を防止）
3. フォーマットに対応する拡張子を1つだけ付与（jpeg → .jpg）
※ 綴りを間違えたプレースホルダはそのまま残る（エラーにしない）

【依存】
Python標準ライブラリのみ (datetime, re)
"""

import re
from datetime import datetime
from typing import Optional, Union

from shotpipe.models import CaptureMode, ImageFormat

DEFAULT_PATTERN = "Screenshot_{date}_{time}"

_IMAGE_EXT_RE = re.compile(r"\.(png|jpe?g|webp)$", re.IGNORECASE)


def generate_filename(
    mode: Union[CaptureMode, str],
    pattern: str,
    image_format: Union[ImageFormat, str],
    now: Optional[datetime] = None,
) -> str:
    mode = CaptureMode(mode)
    image_format = ImageFormat(image_format)
    now = now or datetime.now()

    substitutions = {
        "{mode}": mode.label,
        "{date}": now.strftime("%Y-%m-%d"),
        "{time}": now.strftime("%H-%M-%S"),
        "{timestamp}": str(int(now.timestamp() * 1000)),
    }

    filename = pattern or DEFAULT_PATTERN
    for placeholder, value in substitutions.items():
        filename = filename.replace(placeholder, value)

    filename = _IMAGE_EXT_RE.sub("", filename)
    return f"{filename}.{image_format.extension}"
