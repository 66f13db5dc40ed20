"""Routes receiving document-creation events from the trigger infrastructure."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status

from ride_notifier.api.deps import get_notification_service, verify_event_secret
from ride_notifier.notifications.service import RideNotificationService
from ride_notifier.schema.events import parse_chat_message_event, parse_ride_join_event

router = APIRouter(dependencies=[Depends(verify_event_secret)])
logger = logging.getLogger(__name__)


@router.post("/ride-notifications/{notification_id}", status_code=status.HTTP_200_OK)
async def ride_notification_created(
  notification_id: str, payload: Annotated[dict[str, Any], Body()], service: Annotated[RideNotificationService, Depends(get_notification_service)]
) -> dict[str, str]:
  """Handle creation of `ride_notifications/{notification_id}`."""
  event = parse_ride_join_event(payload)
  outcome = await service.handle_ride_join(notification_id, event)
  return {"status": outcome.value, "notificationId": notification_id}


@router.post("/rides/{ride_id}/chat/{message_id}", status_code=status.HTTP_200_OK)
async def ride_chat_message_created(
  ride_id: str, message_id: str, payload: Annotated[dict[str, Any], Body()], service: Annotated[RideNotificationService, Depends(get_notification_service)]
) -> dict[str, str]:
  """Handle creation of `rides/{ride_id}/chat/{message_id}`."""
  event = parse_chat_message_event(payload)
  logger.debug("Chat message %s received for ride %s", message_id, ride_id)
  outcome = await service.handle_chat_message(ride_id, event)
  return {"status": outcome.value, "rideId": ride_id, "messageId": message_id}
