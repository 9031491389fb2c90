"""勤怠トラッキング - エントリーポイント（ヘッドレスのアクションバー）"""
import asyncio
import os
import sys
from datetime import date, datetime
from typing import Optional

from dotenv import load_dotenv

from graph.state import ShiftRecord, CHECK_IN, START_BREAK, END_BREAK, CHECK_OUT
from schedulers.scheduler import ShiftMonitorScheduler
from services.config_loader import load_config, build_policy
from services.controller import TimeTrackingController
from services.errors import InvalidTransition
from services.memory_timecard import InMemoryTimecardBackend
from services.slack_client import SlackNotifier, ConsoleNotifier

COMMANDS = {
    "in": CHECK_IN,
    "break": START_BREAK,
    "resume": END_BREAK,
    "out": CHECK_OUT,
}

BUTTON_TEXT = {
    CHECK_IN: "Check In",
    START_BREAK: "Start My Break",
    END_BREAK: "End My Break",
    CHECK_OUT: "Check Out",
}


def _parse_scheduled_start(value: str, today: date) -> Optional[datetime]:
    """HH:MM形式の予定開始時刻を今日の日時に変換"""
    if not value:
        return None
    h, m = map(int, value.split(":"))
    return datetime.combine(today, datetime.min.time()).replace(hour=h, minute=m)


def create_notifier(config: dict):
    """設定に基づいて通知サービスを生成"""
    slack_config = config["slack"]
    slack_token = os.getenv("SLACK_BOT_TOKEN", "")
    slack_channel = os.getenv("SLACK_NOTIFY_CHANNEL", slack_config.get("notify_channel", ""))
    if slack_config["enabled"] and slack_token:
        return SlackNotifier(token=slack_token, channel=slack_channel)
    return ConsoleNotifier()


def create_controller(config: dict, backend, notifier) -> TimeTrackingController:
    """環境変数と設定からコントローラを生成"""
    today = date.today()
    role = os.getenv("TIMECARD_ROLE", "staff")
    policy = build_policy(config, role)

    record = ShiftRecord.new(
        user_id=os.getenv("TIMECARD_USER_ID", "local-user"),
        project_id=os.getenv("TIMECARD_PROJECT_ID", "default"),
        shift_date=today,
        scheduled_start_time=_parse_scheduled_start(
            os.getenv("SCHEDULED_START_TIME", ""), today
        ),
    )
    backend.register(record)

    return TimeTrackingController(
        backend=backend,
        record=record,
        policy=policy,
        on_state_change=notifier.notify_state,
        on_shift_limit_exceeded=lambda: notifier.notify_overtime(policy.overtime_hours),
    )


def render(controller: TimeTrackingController) -> str:
    """アクションバーの表示内容を1行にまとめる"""
    state = controller.current_state()
    parts = []
    if state["badge"]:
        parts.append(f"[{state['badge']}]")
    if state["shift_duration"] > 0:
        hours = int(state["shift_duration"])
        minutes = round((state["shift_duration"] - hours) * 60)
        parts.append(f"勤務 {hours}h {minutes}m" if hours else f"勤務 {minutes}m")
    if state["break_elapsed_minutes"] is not None:
        parts.append(f"休憩 {int(state['break_elapsed_minutes'])}分")
    parts.append(state["status_label"])
    if state["show_control"] and state["next_action"] in BUTTON_TEXT:
        button = BUTTON_TEXT[state["next_action"]]
        parts.append(f"<{button}>" if state["button_enabled"] else f"<{button} (無効)>")
    if state["error"]:
        parts.append(f"エラー: {state['error']}")
    return " ".join(parts)


async def handle_command(controller: TimeTrackingController, command: str) -> None:
    """1コマンド分の操作を実行"""
    action = COMMANDS.get(command)
    if action is None:
        if command == "refresh":
            await controller.refresh()
        elif command != "status":
            print(f"[勤怠トラッキング] 不明なコマンド: {command}")
        return

    operations = {
        CHECK_IN: controller.check_in,
        START_BREAK: controller.start_break,
        END_BREAK: controller.end_break,
        CHECK_OUT: controller.check_out,
    }
    try:
        await operations[action]()
    except InvalidTransition as e:
        print(f"[勤怠トラッキング] {e}")


async def run(config: dict) -> None:
    """メイン処理: 定期再計算を開始し、標準入力の操作を受け付ける"""
    load_dotenv()
    notifier = create_notifier(config)
    backend = InMemoryTimecardBackend()
    controller = create_controller(config, backend, notifier)

    interval = config["scheduler"]["tick_interval_seconds"]
    scheduler = ShiftMonitorScheduler(interval_seconds=interval, job_func=controller.tick)
    scheduler.start()
    print(f"[勤怠トラッキング] {interval}秒間隔で状態を再計算します")
    print("[勤怠トラッキング] コマンド: in / break / resume / out / status / refresh / quit")

    loop = asyncio.get_running_loop()
    try:
        while True:
            print(render(controller))
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            command = line.strip().lower()
            if command in ("quit", "exit"):
                break
            try:
                await handle_command(controller, command)
            except Exception as e:
                print(f"[勤怠トラッキング] 操作中にエラー: {e}")
                notifier.notify_error(str(e))
    finally:
        print("[勤怠トラッキング] 停止中...")
        controller.dispose()
        scheduler.stop()
        await backend.close()
        print("[勤怠トラッキング] 停止しました")


def main():
    """メイン起動処理"""
    config = load_config("config.yaml")
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
