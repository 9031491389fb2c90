import asyncio
from datetime import datetime
from typing import Callable, Optional

from graph.graph import build_graph, initial_monitor_state
from graph.state import ShiftRecord, TrackingState, MonitorState, ON_BREAK
from services.action_resolver import resolve
from services.config_loader import TrackingPolicy
from services.errors import PersistenceFailure, StaleState
from services.shift_clock import ShiftClock
from services.shift_store import ShiftStateStore
from services.timecard_interface import TimecardBackend


class TimeTrackingController:
    """勤怠ステートマシンをUIに提供するコントローラ。

    ShiftClock・ShiftStateStore・ActionResolverを束ね、
    非同期処理中のloading/errorとホストへの通知を管理する。
    処理中の遷移がある間は、他の遷移要求はキューに積まず何もしない。
    """

    def __init__(
        self,
        backend: TimecardBackend,
        record: ShiftRecord,
        policy: TrackingPolicy,
        clock: Optional[ShiftClock] = None,
        on_state_change: Optional[Callable[[str], None]] = None,
        on_shift_limit_exceeded: Optional[Callable[[], None]] = None,
    ):
        self._backend = backend
        self._policy = policy
        self._clock = clock or ShiftClock()
        self._store = ShiftStateStore(backend, record, clock=self._clock)
        self._on_state_change = on_state_change
        self._graph = build_graph(
            clock=self._clock,
            policy=policy,
            on_shift_limit_exceeded=self._fire_shift_limit_exceeded,
        )
        self._on_shift_limit_exceeded = on_shift_limit_exceeded
        self._overtime_notified = False
        self._inflight: Optional[asyncio.Future] = None
        self._disposed = False
        self.loading = False
        self.error: Optional[str] = None

    @property
    def record(self) -> ShiftRecord:
        return self._store.record

    @property
    def status(self) -> str:
        return self._store.status

    @property
    def policy(self) -> TrackingPolicy:
        return self._policy

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def check_in(self) -> bool:
        return await self._run(self._store.check_in)

    async def start_break(self) -> bool:
        return await self._run(self._store.start_break)

    async def end_break(self) -> bool:
        return await self._run(self._end_break_with_grace)

    async def check_out(self) -> bool:
        return await self._run(self._store.check_out)

    async def _end_break_with_grace(self) -> ShiftRecord:
        record = self._store.record
        at = None
        if record.status == ON_BREAK and record.break_start_time is not None:
            at = self._clock.break_end_with_grace(
                record.break_start_time,
                self._clock.now(),
                self._policy.min_break_minutes,
                self._policy.break_grace_minutes,
            )
        return await self._store.end_break(at)

    async def _run(self, operation: Callable) -> bool:
        """遷移を1件だけ実行する。処理中・破棄済みなら何もしない"""
        if self._disposed or self.loading:
            return False

        self.error = None
        self.loading = True
        self._inflight = asyncio.ensure_future(operation())
        try:
            record = await self._inflight
        except asyncio.CancelledError:
            # 破棄されたコンテキストには結果を反映しない
            if self._disposed:
                return False
            raise
        except PersistenceFailure as e:
            self.error = e.reason
            return False
        finally:
            self._inflight = None
            self.loading = False

        if self._disposed:
            return False

        self._notify_state_change(record.status)
        self._evaluate()
        return True

    def _evaluate(self, now: Optional[datetime] = None) -> MonitorState:
        """シフト監視グラフを実行し、残業通知済みフラグを更新する"""
        state = initial_monitor_state(
            self._store.record,
            now or self._clock.now(),
            overtime_notified=self._overtime_notified,
        )
        result = self._graph.invoke(state)
        self._overtime_notified = result.get("overtime_notified", self._overtime_notified)
        return result

    async def tick(self) -> Optional[TrackingState]:
        """定期実行用: 派生状態の再計算・日付切り替え・自動退勤"""
        if self._disposed:
            return None

        result = self._evaluate()

        # 遷移の処理中はシフトを切り替えない
        if result.get("new_day") and not self.loading:
            self._start_new_shift(result["now"])
        elif result.get("auto_check_out") and not self.loading:
            await self.check_out()

        return self.current_state()

    def _start_new_shift(self, now: datetime) -> None:
        old = self._store.record
        scheduled = None
        if old.scheduled_start_time is not None:
            scheduled = datetime.combine(now.date(), old.scheduled_start_time.time())
        record = ShiftRecord.new(old.user_id, old.project_id, now.date(), scheduled)
        self._store.start_new_shift(record)
        self._overtime_notified = False
        self.error = None
        self._notify_state_change(record.status)

    async def refresh(self) -> ShiftRecord:
        """サーバー上の最新記録を取得してローカル状態と同期する"""
        if self._disposed or self.loading:
            return self._store.record

        try:
            server_record = await self._backend.fetch_shift(self._store.record.shift_id)
        except Exception as e:
            self.error = str(e) or type(e).__name__
            return self._store.record

        if server_record is None or self._disposed:
            return self._store.record

        previous_id = self._store.record.shift_id
        try:
            self._store.adopt(server_record)
        except StaleState as e:
            self.error = str(e)
            self._notify_state_change(server_record.status)

        if server_record.shift_id != previous_id:
            self._overtime_notified = False
        self._evaluate()
        return self._store.record

    def current_state(self, now: Optional[datetime] = None) -> TrackingState:
        """UIが描画する派生状態を返す（読み取りのみ）"""
        record = self._store.record
        now = now or self._clock.now()
        shift_duration = self._clock.shift_duration(record, now)
        is_overtime = self._clock.is_overtime(shift_duration, self._policy.overtime_hours)
        break_elapsed = self._clock.break_elapsed_minutes(record, now)

        resolution = resolve(
            record.status,
            break_elapsed_minutes=break_elapsed,
            min_break_minutes=self._policy.min_break_minutes,
            is_overtime=is_overtime,
            hide_when_complete=self._policy.hide_when_complete,
            scheduled_start_time=record.scheduled_start_time,
        )

        return {
            "status": record.status,
            "next_action": resolution.next_action,
            "status_label": resolution.status_label,
            "can_end_break": resolution.can_end_break,
            "badge": resolution.badge,
            "show_control": resolution.show_control,
            "button_enabled": resolution.can_act and not self.loading,
            "shift_duration": shift_duration,
            "is_overtime": is_overtime,
            "break_elapsed_minutes": break_elapsed,
            "break_remaining_minutes": resolution.break_remaining_minutes,
            "start_variance_minutes": self._clock.start_variance_minutes(record),
            "loading": self.loading,
            "error": self.error,
        }

    def dispose(self) -> None:
        """ホストビュー破棄時に呼ぶ。処理中の遷移結果は破棄される"""
        self._disposed = True
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    def _notify_state_change(self, status: str) -> None:
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(status)
        except Exception as e:
            print(f"[勤怠トラッキング] 状態変更の通知中にエラー: {e}")

    def _fire_shift_limit_exceeded(self) -> None:
        # 通知に失敗しても同じシフトで再通知しない
        self._overtime_notified = True
        if self._on_shift_limit_exceeded is None or self._disposed:
            return
        try:
            self._on_shift_limit_exceeded()
        except Exception as e:
            print(f"[勤怠トラッキング] 残業通知中にエラー: {e}")
