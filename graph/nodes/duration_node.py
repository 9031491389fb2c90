from graph.state import MonitorState
from services.config_loader import TrackingPolicy
from services.shift_clock import ShiftClock


def duration_node(
    state: MonitorState,
    clock: ShiftClock = None,
    policy: TrackingPolicy = None,
) -> dict:
    """勤務時間・休憩経過・残業状態を再計算するノード"""
    clock = clock or ShiftClock()
    record = state["record"]
    now = state["now"]

    shift_duration = clock.shift_duration(record, now)
    is_overtime = False
    if policy is not None:
        is_overtime = clock.is_overtime(shift_duration, policy.overtime_hours)

    return {
        "shift_duration": shift_duration,
        "break_elapsed_minutes": clock.break_elapsed_minutes(record, now),
        "is_overtime": is_overtime,
    }
