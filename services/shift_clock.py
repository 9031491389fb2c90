from datetime import datetime, timedelta
from typing import Callable, Optional

from graph.state import ShiftRecord, ON_BREAK


def _now() -> datetime:
    """テスト時にモック可能な現在時刻取得"""
    return datetime.now()


class ShiftClock:
    """勤務時間・休憩時間・残業判定の時間計算（副作用なし）"""

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now

    def now(self) -> datetime:
        if self._now is not None:
            return self._now()
        return _now()

    def _elapsed(self, start: datetime, end: Optional[datetime]) -> timedelta:
        if end is None:
            end = self.now()
        return max(timedelta(0), end - start)

    def elapsed_hours(self, start: datetime, end: Optional[datetime] = None) -> float:
        """startからend（省略時は現在）までの経過時間。負にはならない"""
        return self._elapsed(start, end).total_seconds() / 3600

    def elapsed_minutes(self, start: datetime, end: Optional[datetime] = None) -> float:
        return self._elapsed(start, end).total_seconds() / 60

    @staticmethod
    def is_overtime(shift_duration: float, threshold_hours: float) -> bool:
        """勤務時間が閾値を超えているか（閾値ちょうどは残業ではない）"""
        return shift_duration > threshold_hours

    def _break_delta(self, record: ShiftRecord, at: Optional[datetime]) -> timedelta:
        if record.break_start_time is None:
            return timedelta(0)
        end = record.break_end_time
        if end is None:
            end = record.check_out_time or at
        return self._elapsed(record.break_start_time, end)

    def break_hours(self, record: ShiftRecord, at: Optional[datetime] = None) -> float:
        """休憩時間。休憩中はatまでを休憩として数える"""
        return self._break_delta(record, at).total_seconds() / 3600

    def shift_duration(self, record: ShiftRecord, at: Optional[datetime] = None) -> float:
        """出勤から退勤（未退勤なら現在）までの時間から休憩を引いたもの"""
        if record.check_in_time is None:
            return 0.0
        if at is None:
            at = self.now()
        end = record.check_out_time or at
        worked = self._elapsed(record.check_in_time, end) - self._break_delta(record, at)
        return max(0.0, worked.total_seconds() / 3600)

    def break_elapsed_minutes(
        self, record: ShiftRecord, at: Optional[datetime] = None
    ) -> Optional[float]:
        """休憩中のみ休憩開始からの経過分を返す"""
        if record.status != ON_BREAK or record.break_start_time is None:
            return None
        return self.elapsed_minutes(record.break_start_time, at)

    @staticmethod
    def start_variance_minutes(record: ShiftRecord) -> Optional[float]:
        """予定開始時刻と実際の出勤時刻の差（分）。正なら遅刻、負なら早出"""
        if record.check_in_time is None or record.scheduled_start_time is None:
            return None
        delta = record.check_in_time - record.scheduled_start_time
        return delta.total_seconds() / 60

    @staticmethod
    def break_end_with_grace(
        break_start: datetime,
        at: datetime,
        min_break_minutes: float,
        grace_minutes: float,
    ) -> datetime:
        """最低休憩時間の直後（猶予内）に終了した場合は最低休憩の終了時刻に丸める"""
        min_end = break_start + timedelta(minutes=min_break_minutes)
        if grace_minutes > 0 and min_end <= at <= min_end + timedelta(minutes=grace_minutes):
            return min_end
        return at
