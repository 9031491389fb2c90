from datetime import datetime

import pytest

from graph.state import NOT_STARTED, CHECKED_IN, ON_BREAK, BREAK_ENDED, CHECKED_OUT
from services.action_resolver import resolve


@pytest.mark.parametrize(
    "status, next_action",
    [
        (NOT_STARTED, "check_in"),
        (CHECKED_IN, "start_break"),
        (ON_BREAK, "end_break"),
        (BREAK_ENDED, "check_out"),
        (CHECKED_OUT, "complete"),
    ],
)
def test_next_action(status, next_action):
    """ステータスごとの次の操作"""
    assert resolve(status).next_action == next_action


def test_break_minimum_not_met():
    """最低休憩時間前は休憩終了ボタンが無効"""
    resolution = resolve(ON_BREAK, break_elapsed_minutes=10, min_break_minutes=30)
    assert resolution.can_end_break is False
    assert resolution.can_act is False
    assert resolution.break_remaining_minutes == 20
    assert "残り20分" in resolution.status_label


def test_break_minimum_met():
    """最低休憩時間経過後は休憩終了可能"""
    resolution = resolve(ON_BREAK, break_elapsed_minutes=30, min_break_minutes=30)
    assert resolution.can_end_break is True
    assert resolution.can_act is True
    assert resolution.break_remaining_minutes == 0


def test_break_without_minimum():
    """最低休憩なしなら即座に終了可能"""
    assert resolve(ON_BREAK, break_elapsed_minutes=0).can_end_break is True


def test_can_end_break_only_on_break():
    assert resolve(CHECKED_IN, break_elapsed_minutes=90, min_break_minutes=30).can_end_break is False


def test_badges():
    """バッジ表示（残業を最優先）"""
    assert resolve(NOT_STARTED).badge is None
    assert resolve(CHECKED_IN).badge == "active"
    assert resolve(BREAK_ENDED).badge == "active"
    assert resolve(ON_BREAK).badge == "on_break"
    assert resolve(ON_BREAK, is_overtime=True).badge == "overtime"
    assert resolve(CHECKED_OUT).badge is None


def test_complete_hides_control_for_role():
    """完了後にボタンを隠すロール"""
    assert resolve(CHECKED_OUT).show_control is True
    assert resolve(CHECKED_OUT, hide_when_complete=True).show_control is False
    assert resolve(CHECKED_OUT).can_act is False
    assert resolve(BREAK_ENDED, hide_when_complete=True).show_control is True


def test_scheduled_start_label():
    """予定開始時刻があれば表示すること"""
    resolution = resolve(NOT_STARTED, scheduled_start_time=datetime(2026, 2, 22, 8, 30))
    assert "08:30" in resolution.status_label


def test_deterministic():
    """同じ入力なら同じ結果"""
    a = resolve(ON_BREAK, break_elapsed_minutes=12.5, min_break_minutes=30)
    b = resolve(ON_BREAK, break_elapsed_minutes=12.5, min_break_minutes=30)
    assert a == b


def test_unknown_status():
    with pytest.raises(ValueError):
        resolve("paused")
