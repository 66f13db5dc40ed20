"""Push notification delivery implementations."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from starlette.concurrency import run_in_threadpool

from ride_notifier.notifications.contracts import INVALID_REGISTRATION_TOKEN, REGISTRATION_TOKEN_NOT_REGISTERED, MulticastResult, PushGatewayError, PushGatewayUnavailableError, PushMessage, SendResponse

logger = logging.getLogger(__name__)

# FCM rejects multicast messages addressing more tokens than this.
FCM_MULTICAST_LIMIT = 500


class FcmPushGateway:
  """`firebase_admin.messaging` backed multicast sender."""

  def __init__(self, *, app: firebase_admin.App | None, dry_run: bool = False) -> None:
    self._app = app
    self._dry_run = dry_run

  async def send_multicast(self, message: PushMessage) -> MulticastResult:
    """Send in chunks of 500 tokens, concatenating outcomes in input order.

    A chunk whose whole call fails is reported as failed for each of its
    tokens and the remaining chunks are still attempted. `PushGatewayError`
    is raised only when no chunk could be sent at all.
    """
    if self._app is None:
      raise PushGatewayUnavailableError("Firebase app is not initialized; cannot send push notifications.")

    responses: list[SendResponse] = []
    tokens = list(message.tokens)
    delivered_chunks = 0
    last_error: Exception | None = None
    for start in range(0, len(tokens), FCM_MULTICAST_LIMIT):
      chunk = tokens[start : start + FCM_MULTICAST_LIMIT]
      fcm_message = build_multicast_message(message, chunk)
      try:
        # The admin SDK is blocking; keep the event loop free while it runs.
        batch = await run_in_threadpool(messaging.send_each_for_multicast, fcm_message, self._dry_run, self._app)
      except (firebase_exceptions.FirebaseError, ValueError) as exc:
        logger.warning("Multicast chunk at offset %d (%d tokens) failed: %s", start, len(chunk), exc)
        last_error = exc
        code = _firebase_error_code(exc)
        responses.extend(SendResponse(token=token, success=False, error_code=code, error_message=str(exc)) for token in chunk)
        continue

      delivered_chunks += 1
      for token, response in zip(chunk, batch.responses, strict=True):
        responses.append(_to_send_response(token, response))

    if last_error is not None and delivered_chunks == 0:
      raise PushGatewayError(f"Multicast send failed: {last_error}") from last_error

    return MulticastResult(responses=responses)


class NullPushGateway:
  """No-op gateway used when push notifications are disabled."""

  async def send_multicast(self, message: PushMessage) -> MulticastResult:
    """Drop the message while recording a debug log."""
    logger.debug("Push notifications disabled; dropping push title=%r tokens=%d", message.title, len(message.tokens))
    return MulticastResult(responses=[SendResponse(token=token, success=True) for token in message.tokens])


def build_multicast_message(message: PushMessage, tokens: list[str]) -> messaging.MulticastMessage:
  """Translate a `PushMessage` into the admin SDK's multicast payload."""
  android = message.android
  android_config = messaging.AndroidConfig(
    notification=messaging.AndroidNotification(
      channel_id=android.channel_id, priority=android.priority, default_sound=android.default_sound, default_vibrate_timings=android.default_vibrate_timings or None, icon=android.icon, color=android.color
    )
  )

  apns_config = None
  if message.apns is not None:
    apns_config = messaging.APNSConfig(payload=messaging.APNSPayload(aps=messaging.Aps(sound=message.apns.sound, badge=message.apns.badge)))

  return messaging.MulticastMessage(tokens=tokens, notification=messaging.Notification(title=message.title, body=message.body), data=dict(message.data), android=android_config, apns=apns_config)


def error_code_for(exc: Exception | None) -> str | None:
  """Map an admin SDK send exception to a `messaging/...` error code."""
  if exc is None:
    return None

  if isinstance(exc, messaging.UnregisteredError):
    return REGISTRATION_TOKEN_NOT_REGISTERED

  if isinstance(exc, firebase_exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
    return INVALID_REGISTRATION_TOKEN

  return _firebase_error_code(exc)


def _to_send_response(token: str, response: messaging.SendResponse) -> SendResponse:
  if response.success:
    return SendResponse(token=token, success=True)

  exc = response.exception
  return SendResponse(token=token, success=False, error_code=error_code_for(exc), error_message=str(exc) if exc else None)


def _firebase_error_code(exc: Exception) -> str:
  # Never an invalid-token code; whole-chunk failures go through here.
  code = getattr(exc, "code", None)
  if isinstance(code, str) and code:
    return f"messaging/{code.lower().replace('_', '-')}"
  return "messaging/unknown-error"
