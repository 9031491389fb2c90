from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from graph.state import ShiftRecord, TRANSITIONS, CHECK_IN, is_allowed
from services.timecard_interface import TimecardBackend, TransitionResult


class InMemoryTimecardBackend(TimecardBackend):
    """メモリ上でタイムカードを保持する実装（ログ出力あり）。

    サーバー側と同じ遷移チェックを行うため、別端末からの操作を
    seed()で再現すると競合（conflict）として拒否される。
    """

    def __init__(self, verbose: bool = True):
        self._records: dict[str, ShiftRecord] = {}
        self._verbose = verbose

    def seed(self, record: ShiftRecord) -> None:
        """サーバー側の記録を直接差し替える（別端末での更新の再現用）"""
        self._records[record.shift_id] = record

    def register(self, record: ShiftRecord) -> None:
        """未登録のシフトのみ登録する"""
        self._records.setdefault(record.shift_id, record)

    async def perform_transition(
        self, shift_id: str, action: str, timestamp: datetime
    ) -> TransitionResult:
        record = self._records.get(shift_id)
        if record is None and action == CHECK_IN:
            # 初回の出勤打刻でシフト記録を作成する
            user_id, project_id, day = shift_id.rsplit(":", 2)
            record = ShiftRecord.new(user_id, project_id, date.fromisoformat(day))
        if record is None:
            return TransitionResult(success=False, timestamp=None, error="shift not found")

        if not is_allowed(action, record.status):
            self._log(f"競合のため拒否: {action}（サーバー状態: {record.status}）")
            return TransitionResult(success=False, timestamp=None, error="conflict")

        _, next_status, field = TRANSITIONS[action]
        self._records[shift_id] = replace(record, status=next_status, **{field: timestamp})
        self._log(f"{action}: {timestamp.strftime('%H:%M')}")
        return TransitionResult(success=True, timestamp=timestamp, error=None)

    async def fetch_shift(self, shift_id: str) -> Optional[ShiftRecord]:
        return self._records.get(shift_id)

    async def close(self) -> None:
        self._records.clear()

    def _log(self, message: str) -> None:
        if self._verbose:
            print(f"[InMemoryTimecard] {message}")
