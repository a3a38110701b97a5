"""
キャプチャ配送パイプライン: 撮影 → 変換 → 配送 → 履歴 → 後片付け

【使用方法】
from shotpipe.config import CaptureConfig
from shotpipe.delivery_pipeline import DeliveryPipeline
from shotpipe.models import CaptureMode, Destination

config = CaptureConfig.from_env()
pipeline = DeliveryPipeline(config)

# 一括実行（None ならユーザーキャンセル）
outcome = pipeline.run(CaptureMode.AREA, Destination.BOTH)
if outcome:
    print(outcome.summary())   # "Copied and saved" / "Copied to clipboard" / ...

# プレビュー確認を挟む（Destination か None を返す callable）
outcome = pipeline.run(CaptureMode.WINDOW, preview=ConsolePreview())

# 個別呼び出し（UI層からの利用）
result = pipeline.capture(CaptureMode.FULLSCREEN, delay_seconds=5)
if result:
    try:
        outcome = pipeline.deliver(result, Destination.CLIPBOARD)
    finally:
        pipeline.cleanup(result)

【処理内容】
状態遷移: IDLE → CAPTURING → (CANCELLED | CONVERTING) → DELIVERING → CLEANUP → DONE
1. CAPTURING: screencapture で一時 PNG を生成。出力なし → CANCELLED（エラー表示なし）
2. CONVERTING: FormatSpec に従い変換。失敗時は一時ファイルを削除して例外を送出（配送しない）
3. DELIVERING: クリップボード・保存先へそれぞれ独立に配送（片方の失敗で他方を中断しない）
4. 履歴: プレビューなしなら常に、プレビュー経由なら1つ以上成功時に記録。
   失敗はログのみ（ユーザーには出さない、配送結果も巻き戻さない）
5. CLEANUP: 成功・失敗・キャンセルに関わらず一時ファイルを削除
6. プレビューは一時ファイルの存在期間内に同期的に呼ばれる。None → 破棄、例外 → デフォルト動作

【依存】
shotpipe 全モジュール, time, logging
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from shotpipe.config import CaptureConfig
from shotpipe.destinations import copy_to_clipboard, save_to_file, save_to_internal
from shotpipe.errors import ConfigurationError, ShotpipeError, from_os_error
from shotpipe.filename_generator import generate_filename
from shotpipe.format_converter import FormatConverter
from shotpipe.history_store import HistoryStore
from shotpipe.models import (
    CaptureMode,
    CaptureRequest,
    CaptureResult,
    DeliveryOutcome,
    Destination,
    DestinationStatus,
    HistoryEntry,
    PipelineState,
)
from shotpipe.process_invoker import ProcessInvoker
from shotpipe.temp_store import TempCaptureStore

logger = logging.getLogger(__name__)

PreviewStage = Callable[[CaptureResult], Optional[Destination]]


class DeliveryPipeline:
    def __init__(
        self,
        config: CaptureConfig,
        invoker: Optional[ProcessInvoker] = None,
        converter: Optional[FormatConverter] = None,
        temp_store: Optional[TempCaptureStore] = None,
        history: Optional[HistoryStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        errors = config.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        self._config = config
        self._invoker = invoker or ProcessInvoker(config)
        self._converter = converter or FormatConverter(self._invoker)
        self._temp_store = temp_store or TempCaptureStore(config.temp_dir)
        self._history = history or HistoryStore(config.history_path)
        self._clock = clock
        self.state = PipelineState.IDLE

    @property
    def temp_store(self) -> TempCaptureStore:
        return self._temp_store

    @property
    def history(self) -> HistoryStore:
        return self._history

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ===== CAPTURING / CONVERTING =====

    def capture(self, mode, delay_seconds: Optional[int] = None) -> Optional[CaptureResult]:
        mode = CaptureMode(mode)
        request = CaptureRequest(mode, delay_seconds, sound_enabled=self._config.play_sound)
        spec = self._config.format_spec()
        # パターン中の "/" や ".." で保存先の外へ出ないようファイル名部分のみ使う
        filename = Path(generate_filename(
            mode, self._config.filename_pattern, spec.format,
            now=datetime.fromtimestamp(self._clock()),
        )).name

        self.state = PipelineState.CAPTURING
        try:
            raw_path = self._temp_store.allocate_raw()
        except OSError as e:
            logger.error("一時ディレクトリを作成できません (%s): %s", self._temp_store.root, e)
            self.state = PipelineState.DONE
            raise from_os_error("tempdir", e) from e
        try:
            produced = self._invoker.capture(request, raw_path)
        except Exception:
            self.cleanup()
            raise

        if not produced:
            self._temp_store.cleanup()
            self.state = PipelineState.CANCELLED
            return None

        self.state = PipelineState.CONVERTING
        final_path = self._temp_store.allocate(filename)
        try:
            self._converter.convert(raw_path, spec, final_path)
        except Exception as e:
            logger.error("フォーマット変換失敗 (%s): %s", spec.format.value, e)
            self.cleanup()
            raise

        if final_path != raw_path:
            self._temp_store.delete(raw_path)

        logger.info("撮影完了: %s (mode=%s, format=%s)", filename, mode.value, spec.format.value)
        return CaptureResult(filepath=str(final_path), filename=filename, mode=mode)

    # ===== DELIVERING =====

    def deliver(self, result: CaptureResult, destination, record_always: bool = True) -> DeliveryOutcome:
        destination = Destination.parse(destination)
        self.state = PipelineState.DELIVERING
        outcome = DeliveryOutcome(destination=destination, filename=result.filename)

        if destination.wants_clipboard:
            try:
                copy_to_clipboard(self._invoker, Path(result.filepath))
                outcome.clipboard = DestinationStatus.SUCCEEDED
            except ShotpipeError as e:
                logger.error("クリップボードコピー失敗: %s", e)
                outcome.clipboard = DestinationStatus.FAILED
                outcome.errors[Destination.CLIPBOARD.value] = e

        if destination.wants_file:
            try:
                saved = save_to_file(
                    Path(result.filepath), result.filename,
                    self._config.resolved_save_location(),
                )
                if saved is None:
                    logger.info("保存先が未設定のため保存をスキップ")
                    outcome.file = DestinationStatus.NOT_CONFIGURED
                else:
                    outcome.file = DestinationStatus.SUCCEEDED
                    outcome.saved_path = str(saved)
            except ShotpipeError as e:
                logger.error("ファイル保存失敗: %s", e)
                outcome.file = DestinationStatus.FAILED
                outcome.errors[Destination.FILE.value] = e

        if record_always or outcome.any_succeeded:
            outcome.history_entry = self._record_history(result)

        return outcome

    def _record_history(self, result: CaptureResult) -> Optional[HistoryEntry]:
        """履歴保存（ベストエフォート、失敗はログのみ）"""
        timestamp = self._now_ms()
        try:
            internal = save_to_internal(
                Path(result.filepath), result.filename,
                self._config.captures_dir, stamp=timestamp,
            )
            return self._history.append(
                filepath=str(internal),
                filename=result.filename,
                timestamp=timestamp,
                mode=result.mode,
            )
        except Exception as e:
            logger.warning("履歴保存失敗（無視）: %s", e)
            return None

    # ===== CLEANUP =====

    def cleanup(self, result: Optional[CaptureResult] = None) -> int:
        self.state = PipelineState.CLEANUP
        deleted = self._temp_store.cleanup()
        if result is not None and self._temp_store.delete(Path(result.filepath)):
            deleted += 1
        self.state = PipelineState.DONE
        return deleted

    # ===== 一括実行 =====

    def run(
        self,
        mode,
        destination=None,
        delay_seconds: Optional[int] = None,
        preview: Optional[PreviewStage] = None,
    ) -> Optional[DeliveryOutcome]:
        destination = Destination.parse(destination) if destination else self._config.destination
        result = self.capture(mode, delay_seconds)
        if result is None:
            return None

        try:
            record_always = True
            if preview is not None:
                try:
                    chosen = preview(result)
                except Exception as e:
                    logger.error("プレビュー失敗、デフォルト動作にフォールバック: %s", e)
                    chosen = destination
                else:
                    if chosen is None:
                        logger.info("プレビューで破棄: %s", result.filename)
                        return None
                    record_always = False
                destination = chosen
            return self.deliver(result, destination, record_always=record_always)
        finally:
            self.cleanup(result)
