# graph/nodes/day_rollover_node.py
from graph.state import MonitorState, NOT_STARTED, CHECKED_OUT


def day_rollover_node(state: MonitorState) -> dict:
    """日付が変わったら新しいシフトが必要かを判定するノード"""
    record = state["record"]
    today = state["now"].date()

    # 勤務中のシフトは日付を跨いでも継続する
    if record.shift_date != today and record.status in (NOT_STARTED, CHECKED_OUT):
        return {"new_day": True}

    return {"new_day": False}
