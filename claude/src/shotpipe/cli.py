"""
shotpipe CLI: capture / timer / history / clean-temp コマンド

【使用方法】
# 範囲選択で撮影（デフォルト動作は SHOTPIPE_DEFAULT_ACTION）
python3 -m shotpipe capture area

# ウィンドウを撮影してクリップボード + ファイル保存
python3 -m shotpipe capture window --to both

# 全画面を5秒後に撮影、プレビューで配送先を選ぶ
python3 -m shotpipe capture fullscreen --delay 5 --preview

# セルフタイマー（範囲選択、SHOTPIPE_TIMER_DELAY 秒、プレビュー必須）
python3 -m shotpipe timer

# 履歴
python3 -m shotpipe history list
python3 -m shotpipe history copy <id>
python3 -m shotpipe history open <id>
python3 -m shotpipe history reveal <id>
python3 -m shotpipe history delete <id>
python3 -m shotpipe history clear

# 異常終了で残った一時ファイルの掃除
python3 -m shotpipe clean-temp

【処理内容】
- capture / timer: DeliveryPipeline.run を呼び、結果サマリーを1行表示
  キャンセル時は何も表示せず終了コード0、失敗時は短いメッセージを表示して終了コード1
- history: 存在しないファイルの履歴を掃除してから操作
- ログは logging.basicConfig（標準エラー + log_dir/shotpipe.log）

【依存】
shotpipe.config, shotpipe.delivery_pipeline, shotpipe.history_browser, shotpipe.preview
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional

from shotpipe.config import CaptureConfig
from shotpipe.errors import ConfigurationError, ExternalToolFailure, ShotpipeError
from shotpipe.models import CaptureMode, DeliveryOutcome, Destination, DestinationStatus

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(config: CaptureConfig, verbose: bool = False) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_dir / "shotpipe.log", encoding="utf-8"))
    except OSError as e:
        print(f"ログファイルを作成できません: {e}", file=sys.stderr)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )


def _report_outcome(outcome: DeliveryOutcome) -> int:
    """配送結果を表示。1つも成功しなければ終了コード1"""
    if outcome.file is DestinationStatus.NOT_CONFIGURED:
        print("No save location configured: set SHOTPIPE_SAVE_LOCATION")
    for name, error in outcome.errors.items():
        title = "Copy failed" if name == Destination.CLIPBOARD.value else "Save failed"
        message = error.user_message if isinstance(error, ExternalToolFailure) else str(error)
        print(f"{title}: {message}")

    summary = outcome.summary()
    if summary:
        print(summary)
        return 0
    return 1


def _run_capture(config: CaptureConfig, mode: CaptureMode, destination: Optional[str],
                 delay: Optional[int], preview: bool) -> int:
    from shotpipe.delivery_pipeline import DeliveryPipeline
    from shotpipe.preview import ConsolePreview

    pipeline = DeliveryPipeline(config)
    if delay:
        print(f"Select area, then capture in {delay}s")
    try:
        outcome = pipeline.run(
            mode,
            destination=destination,
            delay_seconds=delay,
            preview=ConsolePreview() if preview else None,
        )
    except ExternalToolFailure as e:
        print(f"{e.title}: {e.user_message}")
        return 1

    if outcome is None:
        return 0
    return _report_outcome(outcome)


def cmd_capture(args, config: CaptureConfig) -> int:
    preview = config.show_preview if args.preview is None else args.preview
    return _run_capture(config, CaptureMode(args.mode), args.to, args.delay, preview)


def cmd_timer(args, config: CaptureConfig) -> int:
    delay = args.delay if args.delay is not None else config.timer_delay
    return _run_capture(config, CaptureMode.AREA, None, delay, preview=True)


def cmd_history(args, config: CaptureConfig) -> int:
    from shotpipe.history_browser import copy_entry, delete_entry, load_valid_entries
    from shotpipe.history_store import HistoryStore
    from shotpipe.process_invoker import ProcessInvoker

    store = HistoryStore(config.history_path)

    if args.action == "clear":
        # ファイルは残し、履歴のみ消去
        store.clear()
        print("History cleared")
        return 0

    entries = load_valid_entries(store)

    if args.action == "list":
        if not entries:
            print("履歴はありません")
            return 0
        print(f"履歴 ({len(entries)}件):\n")
        for entry in entries:
            taken = datetime.fromtimestamp(entry.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
            print(f"  {entry.id}  {CaptureMode(entry.mode).label:<10} {taken}  {entry.filename}")
        return 0

    entry = next((e for e in entries if e.id == args.id), None)
    if entry is None:
        print(f"履歴が見つかりません: {args.id}")
        return 1

    invoker = ProcessInvoker(config)
    if args.action == "copy":
        copy_entry(invoker, entry)
        print("Copied to clipboard")
    elif args.action == "open":
        invoker.open_file(entry.filepath)
    elif args.action == "reveal":
        invoker.open_file(entry.filepath, reveal=True)
    elif args.action == "delete":
        delete_entry(store, entry)
        print("Screenshot deleted")
    return 0


def cmd_clean_temp(args, config: CaptureConfig) -> int:
    from shotpipe.temp_store import TempCaptureStore

    deleted = TempCaptureStore(config.temp_dir).cleanup_stale(retention_sec=args.retention)
    print(f"一時ファイルを{len(deleted)}件削除")
    return 0


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"整数を指定してください: {value}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"0以上を指定してください: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shotpipe", description="スクリーンショット撮影・配送")
    parser.add_argument("-v", "--verbose", action="store_true", help="DEBUGログを出力")
    sub = parser.add_subparsers(dest="command", required=True)

    p_capture = sub.add_parser("capture", help="撮影して配送")
    p_capture.add_argument("mode", choices=[m.value for m in CaptureMode])
    p_capture.add_argument("--to", choices=["clipboard", "file", "both", "copy", "save"],
                           help="配送先（未指定時は設定のデフォルト動作）")
    p_capture.add_argument("--delay", type=_non_negative_int, help="撮影までの秒数")
    p_capture.add_argument("--preview", dest="preview", action="store_true", default=None,
                           help="プレビューで配送先を選ぶ")
    p_capture.add_argument("--no-preview", dest="preview", action="store_false")
    p_capture.set_defaults(func=cmd_capture)

    p_timer = sub.add_parser("timer", help="セルフタイマー撮影（範囲選択 + プレビュー）")
    p_timer.add_argument("--delay", type=_non_negative_int, help="秒数（未指定時は SHOTPIPE_TIMER_DELAY）")
    p_timer.set_defaults(func=cmd_timer)

    p_history = sub.add_parser("history", help="履歴操作")
    p_history.add_argument("action", choices=["list", "copy", "open", "reveal", "delete", "clear"])
    p_history.add_argument("id", nargs="?", default="")
    p_history.set_defaults(func=cmd_history)

    p_clean = sub.add_parser("clean-temp", help="古い一時ファイルを削除")
    p_clean.add_argument("--retention", type=_non_negative_int, default=3600, help="保持秒数")
    p_clean.set_defaults(func=cmd_clean_temp)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = CaptureConfig.from_env()
    setup_logging(config, verbose=args.verbose)

    try:
        return args.func(args, config)
    except ConfigurationError as e:
        print(f"設定エラー: {e}")
        return 1
    except ShotpipeError as e:
        logger.error("%s", e)
        message = e.user_message if isinstance(e, ExternalToolFailure) else str(e)
        print(f"Failed: {message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
