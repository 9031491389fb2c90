from typing import Callable, Optional

from graph.state import MonitorState


def alert_node(
    state: MonitorState,
    on_shift_limit_exceeded: Optional[Callable[[], None]] = None,
) -> dict:
    """残業アラートをホストに通知するノード"""
    if state["overtime_alert"] and on_shift_limit_exceeded is not None:
        on_shift_limit_exceeded()

    return {}
