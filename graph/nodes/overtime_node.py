from graph.state import MonitorState


def overtime_node(state: MonitorState) -> dict:
    """残業に初めて入った時だけアラートを立てるノード"""
    if state["is_overtime"] and not state["overtime_notified"]:
        return {"overtime_alert": True, "overtime_notified": True}

    return {"overtime_alert": False}
