from graph.state import MonitorState, CHECKED_IN, BREAK_ENDED
from services.config_loader import TrackingPolicy


def shift_limit_node(state: MonitorState, policy: TrackingPolicy = None) -> dict:
    """最大勤務時間に達したら自動退勤を要求するノード"""
    if policy is None or policy.max_hours_before_stop is None:
        return {"auto_check_out": False}

    # 休憩中は退勤できないため、休憩終了後に判定する
    if state["record"].status not in (CHECKED_IN, BREAK_ENDED):
        return {"auto_check_out": False}

    return {"auto_check_out": state["shift_duration"] >= policy.max_hours_before_stop}
