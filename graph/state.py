from dataclasses import dataclass
from datetime import date, datetime
from typing import TypedDict, Optional

# シフトのステータス
NOT_STARTED = "not_started"
CHECKED_IN = "checked_in"
ON_BREAK = "on_break"
BREAK_ENDED = "break_ended"
CHECKED_OUT = "checked_out"

STATUSES = (NOT_STARTED, CHECKED_IN, ON_BREAK, BREAK_ENDED, CHECKED_OUT)

# 操作
CHECK_IN = "check_in"
START_BREAK = "start_break"
END_BREAK = "end_break"
CHECK_OUT = "check_out"
COMPLETE = "complete"

# 許可される遷移: action -> (遷移元ステータス, 遷移先ステータス, 記録するフィールド)
TRANSITIONS = {
    CHECK_IN: ((NOT_STARTED,), CHECKED_IN, "check_in_time"),
    START_BREAK: ((CHECKED_IN,), ON_BREAK, "break_start_time"),
    END_BREAK: ((ON_BREAK,), BREAK_ENDED, "break_end_time"),
    CHECK_OUT: ((CHECKED_IN, BREAK_ENDED), CHECKED_OUT, "check_out_time"),
}


def is_allowed(action: str, status: str) -> bool:
    """statusからactionが実行可能か"""
    rule = TRANSITIONS.get(action)
    return rule is not None and status in rule[0]


@dataclass(frozen=True)
class ShiftRecord:
    """1ワーカー・1プロジェクト・1シフト分の勤怠記録"""

    shift_id: str
    user_id: str
    project_id: str
    shift_date: date
    status: str = NOT_STARTED
    check_in_time: Optional[datetime] = None
    break_start_time: Optional[datetime] = None
    break_end_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    scheduled_start_time: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        user_id: str,
        project_id: str,
        shift_date: date,
        scheduled_start_time: Optional[datetime] = None,
    ) -> "ShiftRecord":
        """未出勤状態の新しいシフト記録を作る"""
        return cls(
            shift_id=f"{user_id}:{project_id}:{shift_date.isoformat()}",
            user_id=user_id,
            project_id=project_id,
            shift_date=shift_date,
            scheduled_start_time=scheduled_start_time,
        )

    @property
    def checkpoints(self) -> list[datetime]:
        """記録済みの打刻時刻（時系列順）"""
        times = [
            self.check_in_time,
            self.break_start_time,
            self.break_end_time,
            self.check_out_time,
        ]
        return [t for t in times if t is not None]


def validate_record(record: ShiftRecord) -> None:
    """ShiftRecordの不変条件を検証する。違反時はValueError"""
    status = record.status
    if status not in STATUSES:
        raise ValueError(f"不明なステータス: {status}")

    if (record.check_in_time is not None) != (status != NOT_STARTED):
        raise ValueError(f"check_in_time が {status} と矛盾しています")

    if status in (ON_BREAK, BREAK_ENDED) and record.break_start_time is None:
        raise ValueError(f"{status} には break_start_time が必要です")
    if status in (NOT_STARTED, CHECKED_IN) and record.break_start_time is not None:
        raise ValueError(f"{status} で break_start_time は設定できません")

    if record.break_end_time is not None:
        if record.break_start_time is None or status not in (BREAK_ENDED, CHECKED_OUT):
            raise ValueError(f"break_end_time が {status} と矛盾しています")
    elif record.break_start_time is not None and status in (BREAK_ENDED, CHECKED_OUT):
        raise ValueError(f"{status} には break_end_time が必要です")

    if (record.check_out_time is not None) != (status == CHECKED_OUT):
        raise ValueError(f"check_out_time が {status} と矛盾しています")

    times = record.checkpoints
    if any(a > b for a, b in zip(times, times[1:])):
        raise ValueError("打刻時刻が時系列順になっていません")


class TrackingState(TypedDict):
    """UIに渡す派生状態（永続化しない）"""
    status: str
    next_action: str                        # check_in / start_break / end_break / check_out / complete
    status_label: str                       # 表示用の状況説明
    can_end_break: bool
    badge: Optional[str]                    # "overtime" / "on_break" / "active"
    show_control: bool                      # 操作ボタンを表示するか
    button_enabled: bool
    shift_duration: float                   # 休憩を除いた勤務時間（時間）
    is_overtime: bool
    break_elapsed_minutes: Optional[float]
    break_remaining_minutes: Optional[int]
    start_variance_minutes: Optional[float] # 予定開始との差（正: 遅刻）
    loading: bool
    error: Optional[str]


class MonitorState(TypedDict):
    """シフト監視グラフの状態"""
    now: datetime
    record: ShiftRecord
    shift_duration: float
    break_elapsed_minutes: Optional[float]
    is_overtime: bool
    overtime_notified: bool     # このシフトで既に超過通知したか
    overtime_alert: bool        # 今回初めて超過した
    auto_check_out: bool        # 最大勤務時間に達した
    new_day: bool               # 日付が変わり新しいシフトが必要
