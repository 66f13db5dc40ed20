"""Push payload builders for ride events."""

from __future__ import annotations

from collections.abc import Sequence

from ride_notifier.notifications.contracts import AndroidHints, ApnsHints, PushMessage

RIDE_UPDATES_CHANNEL = "ride_updates"
FLUTTER_CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
CHAT_BODY_MAX_CHARS = 100

_LAUNCHER_ICON = "@mipmap/ic_launcher"
_BRAND_COLOR = "#6366F1"


def truncate_chat_body(message: str, limit: int = CHAT_BODY_MAX_CHARS) -> str:
  """Cut `message` to `limit` characters plus an ellipsis when longer."""
  if len(message) > limit:
    return message[:limit] + "..."
  return message


def compose_join_message(*, joiner_name: str, destination: str, ride_id: str, joiner_id: str, tokens: Sequence[str]) -> PushMessage:
  """Build the "new rider joined" notification."""
  return PushMessage(
    tokens=tuple(tokens),
    title="🚗 New Rider Joined!",
    body=f"{joiner_name} has joined your ride to {destination}. Check it out!",
    data={"type": "new_rider", "rideId": ride_id, "joinerId": joiner_id, "click_action": FLUTTER_CLICK_ACTION},
    android=AndroidHints(channel_id=RIDE_UPDATES_CHANNEL, priority="high", default_sound=True, default_vibrate_timings=True, icon=_LAUNCHER_ICON, color=_BRAND_COLOR),
    apns=ApnsHints(sound="default", badge=1),
  )


def compose_chat_message(*, sender_name: str, message: str, ride_id: str, tokens: Sequence[str]) -> PushMessage:
  """Build a chat notification; long messages are truncated."""
  return PushMessage(
    tokens=tuple(tokens),
    title=f"💬 {sender_name}",
    body=truncate_chat_body(message),
    data={"type": "chat_message", "rideId": ride_id, "click_action": FLUTTER_CLICK_ACTION},
    android=AndroidHints(channel_id=RIDE_UPDATES_CHANNEL, priority="default", default_sound=True),
  )
