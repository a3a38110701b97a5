"""
キャプチャ履歴の永続化モジュール（最大100件、新しい順）

【使用方法】
from pathlib import Path
from shotpipe.history_store import HistoryStore

store = HistoryStore(Path("~/.shotpipe/history.json").expanduser())

# 追加（IDは自動採番、先頭に挿入、100件を超えた古いものは破棄）
entry = store.append(filepath="/path/captures/1700000000000_Area.png",
                     filename="Area.png", timestamp=1700000000000, mode="area")

# 一覧（新しい順）
entries = store.list()

# 削除 / 全消去
store.remove(entry.id)
store.clear()

【処理内容】
- 履歴リスト全体を1つのJSONドキュメント {"screenshot_history": [...]} として読み書き
- ID = "<timestamp>-<base36 7文字>"（衝突時は再生成）
- 壊れた・存在しないドキュメントは空リストとして扱う
- 書き込みは一時ファイル + os.replace で置き換え
- ファイルの存在確認はしない（呼び出し側 history_browser の責務）

【依存】
json, secrets, pathlib, shotpipe.models
"""

import json
import logging
import os
import secrets
from pathlib import Path
from typing import List, Optional

from shotpipe.models import CaptureMode, HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_KEY = "screenshot_history"
MAX_HISTORY = 100

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _random_suffix(length: int = 7) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


class HistoryStore:
    def __init__(self, path: Path, max_entries: int = MAX_HISTORY):
        self._path = Path(path)
        self._max_entries = max_entries

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> List[HistoryEntry]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            items = data.get(HISTORY_KEY, []) if isinstance(data, dict) else []
            return [HistoryEntry.from_dict(item) for item in items]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("履歴読み込み失敗（空として扱う）: %s - %s", self._path, e)
            return []

    def _save(self, entries: List[HistoryEntry]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {HISTORY_KEY: [e.to_dict() for e in entries]}
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def append(self, filepath: str, filename: str, timestamp: int, mode) -> HistoryEntry:
        entries = self._load()
        existing = {e.id for e in entries}

        entry_id = f"{timestamp}-{_random_suffix()}"
        while entry_id in existing:
            entry_id = f"{timestamp}-{_random_suffix()}"

        entry = HistoryEntry(
            id=entry_id,
            filepath=str(filepath),
            filename=filename,
            timestamp=int(timestamp),
            mode=CaptureMode(mode).value,
        )
        entries.insert(0, entry)
        del entries[self._max_entries:]
        self._save(entries)
        logger.info("履歴追加: %s (%s)", entry.filename, entry.id)
        return entry

    def list(self) -> List[HistoryEntry]:
        return self._load()

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._load():
            if entry.id == entry_id:
                return entry
        return None

    def remove(self, entry_id: str) -> bool:
        entries = self._load()
        filtered = [e for e in entries if e.id != entry_id]
        if len(filtered) == len(entries):
            return False
        self._save(filtered)
        logger.info("履歴削除: %s", entry_id)
        return True

    def clear(self) -> None:
        self._save([])
        logger.info("履歴全消去")

    def count(self) -> int:
        return len(self._load())
