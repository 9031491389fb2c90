from dataclasses import replace
from datetime import datetime
from typing import Optional

from graph.state import (
    ShiftRecord,
    TRANSITIONS,
    CHECK_IN,
    START_BREAK,
    END_BREAK,
    CHECK_OUT,
    NOT_STARTED,
    CHECKED_OUT,
    is_allowed,
    validate_record,
)
from services.errors import InvalidTransition, PersistenceFailure, StaleState
from services.shift_clock import ShiftClock
from services.timecard_interface import TimecardBackend


class ShiftStateStore:
    """現在のシフト記録を保持し、4つの遷移操作でのみ更新する。

    遷移は「ステータス検証 → 永続化 → 成功時のみローカル反映」の順で行う。
    """

    def __init__(
        self,
        backend: TimecardBackend,
        record: ShiftRecord,
        clock: Optional[ShiftClock] = None,
    ):
        validate_record(record)
        self._backend = backend
        self._record = record
        self._clock = clock or ShiftClock()

    @property
    def record(self) -> ShiftRecord:
        return self._record

    @property
    def status(self) -> str:
        return self._record.status

    async def check_in(self, at: Optional[datetime] = None) -> ShiftRecord:
        """出勤"""
        return await self._transition(CHECK_IN, at)

    async def start_break(self, at: Optional[datetime] = None) -> ShiftRecord:
        """休憩開始"""
        return await self._transition(START_BREAK, at)

    async def end_break(self, at: Optional[datetime] = None) -> ShiftRecord:
        """休憩終了"""
        return await self._transition(END_BREAK, at)

    async def check_out(self, at: Optional[datetime] = None) -> ShiftRecord:
        """退勤"""
        return await self._transition(CHECK_OUT, at)

    async def _transition(self, action: str, at: Optional[datetime]) -> ShiftRecord:
        record = self._record
        if not is_allowed(action, record.status):
            raise InvalidTransition(action, record.status)

        timestamp = self._not_before_last(record, at or self._clock.now())

        try:
            result = await self._backend.perform_transition(
                record.shift_id, action, timestamp
            )
        except Exception as e:
            raise PersistenceFailure(str(e) or type(e).__name__) from e

        if not result.success:
            raise PersistenceFailure(result.error or f"{action} failed")

        # サーバー時刻がずれていても時系列順は崩さない
        recorded = self._not_before_last(record, result.timestamp or timestamp)
        _, next_status, field = TRANSITIONS[action]
        self._record = replace(record, status=next_status, **{field: recorded})
        return self._record

    @staticmethod
    def _not_before_last(record: ShiftRecord, timestamp: datetime) -> datetime:
        """直前の打刻より前の時刻は直前の打刻時刻に揃える"""
        if record.checkpoints:
            return max(timestamp, record.checkpoints[-1])
        return timestamp

    def adopt(self, record: ShiftRecord) -> ShiftRecord:
        """サーバーから取得した記録を採用する。ステータスが食い違っていればStaleState"""
        validate_record(record)
        previous = self._record
        self._record = record
        if previous.shift_id == record.shift_id and previous.status != record.status:
            raise StaleState(previous.status, record.status)
        return record

    def start_new_shift(self, record: ShiftRecord) -> ShiftRecord:
        """未出勤または退勤済みのシフトを新しいシフト記録に切り替える"""
        if self._record.status not in (NOT_STARTED, CHECKED_OUT):
            raise InvalidTransition("new_shift", self._record.status)
        validate_record(record)
        self._record = record
        return record
