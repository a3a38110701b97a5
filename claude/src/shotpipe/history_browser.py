"""
履歴一覧の呼び出し側操作（存在しないファイルの掃除・削除・再コピー）

【使用方法】
from shotpipe.history_browser import load_valid_entries, delete_entry, copy_entry

entries = load_valid_entries(store)   # ファイルが消えた履歴は自動で remove
copy_entry(invoker, entries[0])
delete_entry(store, entries[0])       # ファイルも削除

【処理内容】
- load_valid_entries: バックエンドファイルが存在しない履歴を除外し、store.remove を発行
- delete_entry: 内部ストレージのファイルを削除してから履歴から外す
- copy_entry: 履歴画像をクリップボードへ再コピー
- HistoryStore 自体はファイルの存在を確認しない

【依存】
pathlib, shotpipe.history_store, shotpipe.destinations
"""

import logging
from pathlib import Path
from typing import List

from shotpipe.destinations import copy_to_clipboard
from shotpipe.history_store import HistoryStore
from shotpipe.models import HistoryEntry
from shotpipe.process_invoker import ProcessInvoker

logger = logging.getLogger(__name__)


def load_valid_entries(store: HistoryStore) -> List[HistoryEntry]:
    valid = []
    for entry in store.list():
        if Path(entry.filepath).exists():
            valid.append(entry)
        else:
            logger.info("ファイル消失のため履歴から除外: %s", entry.filepath)
            store.remove(entry.id)
    return valid


def delete_entry(store: HistoryStore, entry: HistoryEntry) -> None:
    path = Path(entry.filepath)
    if path.exists():
        path.unlink()
    store.remove(entry.id)


def copy_entry(invoker: ProcessInvoker, entry: HistoryEntry) -> None:
    copy_to_clipboard(invoker, Path(entry.filepath))
