# graph/graph.py
from langgraph.graph import StateGraph, END
from graph.state import MonitorState, NOT_STARTED


def route_after_day_rollover(state: MonitorState) -> str:
    if state["new_day"]:
        return "end"
    return "duration"


def route_after_duration(state: MonitorState) -> str:
    # 退勤済みのシフトも残業判定する
    if state["record"].status == NOT_STARTED:
        return "end"
    return "overtime"


def build_graph(
    clock=None,
    policy=None,
    on_shift_limit_exceeded=None,
):
    """シフト監視用のLangGraphグラフを構築して返す

    各ノード関数は時計・ポリシー・コールバックへの依存を持つため、
    functools.partialでラップして (state) -> dict シグネチャに合わせる。
    引数を省略した場合はデフォルトの時計を使い、残業判定と通知は行わない（テスト用）。
    """
    from functools import partial
    from graph.nodes.day_rollover_node import day_rollover_node
    from graph.nodes.duration_node import duration_node
    from graph.nodes.overtime_node import overtime_node
    from graph.nodes.shift_limit_node import shift_limit_node
    from graph.nodes.alert_node import alert_node

    duration_wrapped = partial(duration_node, clock=clock, policy=policy)
    shift_limit_wrapped = partial(shift_limit_node, policy=policy)
    alert_wrapped = partial(
        alert_node, on_shift_limit_exceeded=on_shift_limit_exceeded
    )

    workflow = StateGraph(MonitorState)

    workflow.add_node("day_rollover", day_rollover_node)
    workflow.add_node("duration", duration_wrapped)
    workflow.add_node("overtime", overtime_node)
    workflow.add_node("shift_limit", shift_limit_wrapped)
    workflow.add_node("alert", alert_wrapped)

    workflow.set_entry_point("day_rollover")

    workflow.add_conditional_edges(
        "day_rollover",
        route_after_day_rollover,
        {"duration": "duration", "end": END},
    )
    workflow.add_conditional_edges(
        "duration",
        route_after_duration,
        {"overtime": "overtime", "end": END},
    )

    workflow.add_edge("overtime", "shift_limit")
    workflow.add_edge("shift_limit", "alert")
    workflow.add_edge("alert", END)

    return workflow.compile()


def initial_monitor_state(record, now, overtime_notified: bool = False) -> MonitorState:
    """グラフ入力用の初期状態"""
    return {
        "now": now,
        "record": record,
        "shift_duration": 0.0,
        "break_elapsed_minutes": None,
        "is_overtime": False,
        "overtime_notified": overtime_notified,
        "overtime_alert": False,
        "auto_check_out": False,
        "new_day": False,
    }
