from abc import ABC, abstractmethod
from typing import Optional
import sys

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError


MESSAGES = {
    "not_started": "🆕 新しいシフトが始まりました",
    "checked_in": "✅ 出勤しました",
    "on_break": "☕ 休憩を開始しました",
    "break_ended": "🔙 休憩を終了しました",
    "checked_out": "🕐 退勤しました",
}

OVERTIME_MESSAGE = "⚠️ 勤務時間が{hours}時間を超えました。休憩・退勤を確認してください"
ERROR_MESSAGE = "❌ 打刻処理でエラーが発生しました（{error}）"


def status_message(status: str) -> str:
    """ステータス変更の通知文"""
    return MESSAGES.get(status, f"ステータスが {status} に変わりました")


def overtime_message(hours: Optional[float]) -> str:
    return OVERTIME_MESSAGE.format(hours=f"{hours:g}" if hours is not None else "?")


class ShiftNotifier(ABC):
    """シフトの状態変化・残業・エラーをワーカーに知らせる"""

    def notify_state(self, status: str) -> bool:
        return self._post(status_message(status))

    def notify_overtime(self, hours: Optional[float]) -> bool:
        return self._post(overtime_message(hours))

    def notify_error(self, error: str) -> bool:
        return self._post(ERROR_MESSAGE.format(error=error))

    @abstractmethod
    def _post(self, text: str) -> bool:
        """通知文を1件送る。送れたらTrue"""
        ...


class ConsoleNotifier(ShiftNotifier):
    """標準出力への通知（Slack未設定時・送信失敗時）"""

    def _post(self, text: str) -> bool:
        print(f"[勤怠通知] {text}", file=sys.stdout)
        return True

    def notify_error(self, error: str) -> bool:
        print(f"[勤怠エラー] {error}", file=sys.stderr)
        return True


class SlackNotifier(ShiftNotifier):
    """Slackチャンネルへの通知。送信に失敗した通知はコンソールに出す"""

    def __init__(self, token: str, channel: str, client: Optional[WebClient] = None):
        self._channel = channel
        self._client = client or WebClient(token=token)
        self._console = ConsoleNotifier()

    def _post(self, text: str) -> bool:
        try:
            self._client.chat_postMessage(channel=self._channel, text=text)
            return True
        except (SlackApiError, OSError) as e:
            print(f"[SlackNotifier] 送信に失敗しました: {e}", file=sys.stderr)
            self._console._post(text)
            return False
