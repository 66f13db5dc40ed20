"""Notification orchestration for ride events."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from ride_notifier.notifications.composer import compose_chat_message, compose_join_message
from ride_notifier.notifications.contracts import MulticastResult, PushGateway, PushGatewayError, PushMessage
from ride_notifier.notifications.ride_repo import RideRepository
from ride_notifier.notifications.user_token_repo import UserTokenRepository, redact_token
from ride_notifier.schema.events import ChatMessageEvent, RideJoinEvent

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
  """How a handler invocation ended."""

  SKIPPED = "skipped"
  RIDE_NOT_FOUND = "ride_not_found"
  NO_RECIPIENTS = "no_recipients"
  SENT = "sent"
  SEND_FAILED = "send_failed"


class RideNotificationService:
  """Dispatches push notifications for ride joins and ride chat messages."""

  def __init__(self, *, token_repo: UserTokenRepository, ride_repo: RideRepository, push_gateway: PushGateway, chat_invalidates_tokens: bool = False) -> None:
    self._token_repo = token_repo
    self._ride_repo = ride_repo
    self._push_gateway = push_gateway
    self._chat_invalidates_tokens = chat_invalidates_tokens
    self._background_tasks: set[asyncio.Task[int]] = set()

  async def handle_ride_join(self, notification_id: str, event: RideJoinEvent) -> DispatchOutcome:
    """Notify the creator and other participants that someone joined the ride."""
    if event.processed:
      logger.info("Notification %s already processed, skipping.", notification_id)
      return DispatchOutcome.SKIPPED

    logger.info("Processing %s notification %s for ride %s", event.type, notification_id, event.ride_id)
    tokens = await self._token_repo.resolve_tokens(event.recipient_ids())

    if not tokens:
      logger.info("No tokens to send notifications to for notification %s.", notification_id)
      # Mark as processed anyway so redeliveries stay no-ops.
      await self._ride_repo.mark_notification_processed(notification_id, stamp=False)
      return DispatchOutcome.NO_RECIPIENTS

    message = compose_join_message(joiner_name=event.joiner_name, destination=event.destination, ride_id=event.ride_id, joiner_id=event.joiner_id, tokens=tokens)
    result = await self._dispatch(message, context=f"notification {notification_id}")
    if result is not None:
      self._handle_failures(result, invalidate=True)

    # Mark processed whatever the send outcome was.
    await self._ride_repo.mark_notification_processed(notification_id, stamp=True)
    return DispatchOutcome.SENT if result is not None else DispatchOutcome.SEND_FAILED

  async def handle_chat_message(self, ride_id: str, event: ChatMessageEvent) -> DispatchOutcome:
    """Notify every ride participant except the sender about a chat message."""
    ride = await self._ride_repo.get_ride(ride_id)
    if ride is None:
      logger.debug("Ride %s not found; dropping chat notification.", ride_id)
      return DispatchOutcome.RIDE_NOT_FOUND

    tokens = await self._token_repo.resolve_tokens(ride.recipient_ids(exclude=event.sender_id))
    if not tokens:
      return DispatchOutcome.NO_RECIPIENTS

    message = compose_chat_message(sender_name=event.sender_name, message=event.message, ride_id=ride_id, tokens=tokens)
    result = await self._dispatch(message, context=f"chat in ride {ride_id}")
    if result is None:
      return DispatchOutcome.SEND_FAILED

    logger.info("Chat notification sent for ride %s", ride_id)
    self._handle_failures(result, invalidate=self._chat_invalidates_tokens)
    return DispatchOutcome.SENT

  async def _dispatch(self, message: PushMessage, *, context: str) -> MulticastResult | None:
    """Send one multicast; gateway failures are logged and reported as None."""
    logger.info("Sending notifications to %d devices for %s", len(message.tokens), context)
    try:
      result = await self._push_gateway.send_multicast(message)
    except PushGatewayError as exc:
      logger.error("Error sending multicast message for %s: %s", context, exc)
      return None
    except Exception as exc:  # noqa: BLE001
      logger.error("Error sending multicast message for %s: %s", context, exc, exc_info=True)
      return None

    logger.info("Successfully sent %d notifications, %d failures", result.success_count, result.failure_count)
    return result

  def _handle_failures(self, result: MulticastResult, *, invalidate: bool) -> None:
    scheduled: set[str] = set()
    for response in result.failures():
      logger.error("Failed to send to token %s: code=%s error=%s", redact_token(response.token), response.error_code, response.error_message)
      if not response.token_is_invalid:
        continue

      if not invalidate:
        logger.warning("Token %s is invalid but cleanup is disabled for this flow.", redact_token(response.token))
        continue

      # A token held by two recipients fails twice; clean it up once.
      if response.token in scheduled:
        continue
      scheduled.add(response.token)
      self._schedule_invalidation(response.token)

  def _schedule_invalidation(self, token: str) -> None:
    """Remove the token in a detached task; the caller never waits for it."""
    task = asyncio.create_task(self._token_repo.invalidate_token(token))
    self._background_tasks.add(task)
    task.add_done_callback(self._background_tasks.discard)
    task.add_done_callback(self._log_task_error)

  @staticmethod
  def _log_task_error(task: asyncio.Task[int]) -> None:
    """Log background task exceptions to avoid silent cleanup failures."""
    if task.cancelled():
      logger.warning("Background token invalidation task was cancelled.")
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Background token invalidation task failed: %s", exc, exc_info=exc)

  async def drain(self) -> None:
    """Wait for outstanding token invalidation tasks."""
    while self._background_tasks:
      await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
