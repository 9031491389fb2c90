import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from graph.state import (
    NOT_STARTED,
    CHECKED_IN,
    ON_BREAK,
    BREAK_ENDED,
    CHECKED_OUT,
    CHECK_IN,
    START_BREAK,
    END_BREAK,
    CHECK_OUT,
    COMPLETE,
)

NEXT_ACTIONS = {
    NOT_STARTED: CHECK_IN,
    CHECKED_IN: START_BREAK,
    ON_BREAK: END_BREAK,
    BREAK_ENDED: CHECK_OUT,
    CHECKED_OUT: COMPLETE,
}

LABELS = {
    NOT_STARTED: "出勤できます",
    "scheduled": "シフト開始予定 {time}",
    CHECKED_IN: "勤務中です。休憩を開始できます",
    "break_waiting": "休憩中（最低{min}分、残り{remaining}分）",
    "break_ready": "休憩を終了できます（最低{min}分経過）",
    BREAK_ENDED: "休憩終了。退勤できます",
    CHECKED_OUT: "本日のシフトは完了しました",
}


@dataclass(frozen=True)
class Resolution:
    next_action: str
    can_end_break: bool
    status_label: str
    badge: Optional[str]
    show_control: bool
    can_act: bool                           # ローディング以外の条件で操作可能か
    break_remaining_minutes: Optional[int] = None


def resolve(
    status: str,
    break_elapsed_minutes: Optional[float] = None,
    min_break_minutes: float = 0,
    is_overtime: bool = False,
    hide_when_complete: bool = False,
    scheduled_start_time: Optional[datetime] = None,
) -> Resolution:
    """現在のステータスから次に許可される操作と表示用フラグを決定する"""
    if status not in NEXT_ACTIONS:
        raise ValueError(f"不明なステータス: {status}")

    next_action = NEXT_ACTIONS[status]
    can_end_break = False
    remaining = None

    if status == NOT_STARTED and scheduled_start_time is not None:
        label = LABELS["scheduled"].format(time=scheduled_start_time.strftime("%H:%M"))
    elif status == ON_BREAK:
        elapsed = break_elapsed_minutes or 0.0
        can_end_break = elapsed >= min_break_minutes
        remaining = max(0, math.ceil(min_break_minutes - elapsed))
        if can_end_break:
            label = LABELS["break_ready"].format(min=_fmt(min_break_minutes))
        else:
            label = LABELS["break_waiting"].format(
                min=_fmt(min_break_minutes), remaining=remaining
            )
    else:
        label = LABELS[status]

    if is_overtime:
        badge = "overtime"
    elif status == ON_BREAK:
        badge = "on_break"
    elif status in (CHECKED_IN, BREAK_ENDED):
        badge = "active"
    else:
        badge = None

    show_control = not (status == CHECKED_OUT and hide_when_complete)
    can_act = next_action != COMPLETE and (status != ON_BREAK or can_end_break)

    return Resolution(
        next_action=next_action,
        can_end_break=can_end_break,
        status_label=label,
        badge=badge,
        show_control=show_control,
        can_act=can_act,
        break_remaining_minutes=remaining,
    )


def _fmt(minutes: float) -> str:
    return str(int(minutes)) if float(minutes).is_integer() else f"{minutes:g}"
