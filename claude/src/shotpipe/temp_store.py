"""
撮影中の一時ファイル管理モジュール

【使用方法】
from pathlib import Path
from shotpipe.temp_store import TempCaptureStore

store = TempCaptureStore(Path("/tmp/shotpipe"))
raw = store.allocate_raw()               # /tmp/shotpipe/temp_1700000000000.png
final = store.allocate("Area_2024-01-15.jpg")

# 撮影1回分の全ファイルを1回だけ削除
deleted = store.cleanup()

# 異常終了で残った古いファイルを掃除（デフォルト1時間以上前）
store.cleanup_stale(retention_sec=3600)

【処理内容】
1. 一時ディレクトリを必要時に作成（冪等）
2. 撮影 PNG と変換後ファイルのパスを払い出し、払い出したパスを追跡
3. cleanup で追跡中のファイルを削除し追跡から外す（同じパスを2回削除しない）
4. delete は一時ディレクトリ外のパスを拒否する（パス計算ミスでユーザーファイルを消さない）
   （参考: cleanup_manager.py の _safe_delete パターン）

【依存】
Python標準ライブラリ (pathlib, time, logging)
"""

import logging
import time
from pathlib import Path
from typing import List, Set

logger = logging.getLogger(__name__)


class TempCaptureStore:
    RAW_PREFIX = "temp_"

    def __init__(self, root: Path):
        self._root = Path(root)
        self._owned: Set[Path] = set()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def owned(self) -> List[Path]:
        return sorted(self._owned)

    def ensure(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def allocate_raw(self) -> Path:
        """screencapture の出力先（常に PNG）"""
        self.ensure()
        stamp = int(time.time() * 1000)
        path = self._root / f"{self.RAW_PREFIX}{stamp}.png"
        while path in self._owned or path.exists():
            stamp += 1
            path = self._root / f"{self.RAW_PREFIX}{stamp}.png"
        self._owned.add(path)
        return path

    def allocate(self, filename: str) -> Path:
        """変換後ファイルの出力先"""
        self.ensure()
        path = self._root / Path(filename).name
        self._owned.add(path)
        return path

    def contains(self, path: Path) -> bool:
        try:
            resolved = Path(path).resolve()
            root = self._root.resolve()
        except OSError:
            return False
        return root in resolved.parents

    def delete(self, path: Path) -> bool:
        path = Path(path)
        if not self.contains(path):
            logger.warning("一時ディレクトリ外のため削除拒否: %s", path)
            return False
        self._owned.discard(path)
        if not path.exists():
            return False
        try:
            path.unlink()
            logger.debug("削除: %s", path)
            return True
        except OSError as e:
            logger.warning("削除失敗 %s: %s", path, e)
            return False

    def cleanup(self) -> int:
        deleted = 0
        for path in list(self._owned):
            if self.delete(path):
                deleted += 1
        self._owned.clear()
        return deleted

    def cleanup_stale(self, retention_sec: int = 3600) -> List[str]:
        deleted = []
        if not self._root.exists():
            return deleted

        cutoff = time.time() - retention_sec
        for filepath in self._root.iterdir():
            if filepath in self._owned:
                continue
            if filepath.is_file() and filepath.stat().st_mtime < cutoff:
                if self.delete(filepath):
                    deleted.append(filepath.name)
        return deleted
