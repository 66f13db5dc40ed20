"""Factory helpers for the ride notification service."""

from __future__ import annotations

import logging

from ride_notifier.config import Settings
from ride_notifier.core.firebase import get_firestore_client, initialize_firebase
from ride_notifier.notifications.contracts import PushGateway
from ride_notifier.notifications.push_sender import FcmPushGateway, NullPushGateway
from ride_notifier.notifications.ride_repo import RideRepository
from ride_notifier.notifications.service import RideNotificationService
from ride_notifier.notifications.user_token_repo import UserTokenRepository

logger = logging.getLogger(__name__)


def build_push_gateway(settings: Settings) -> PushGateway:
  """Pick the FCM gateway, or the null gateway when push is disabled."""
  if not settings.push_enabled:
    logger.info("Push notifications disabled; using the null push gateway.")
    return NullPushGateway()

  return FcmPushGateway(app=initialize_firebase(settings))


def build_notification_service(settings: Settings) -> RideNotificationService:
  """Construct the service and its Firestore/FCM clients from configuration."""
  client = get_firestore_client(settings)
  if client is None:
    raise RuntimeError("Firestore client unavailable; set FIREBASE_PROJECT_ID (and credentials) to run the ride notifier.")

  token_repo = UserTokenRepository(client=client, collection=settings.users_collection)
  ride_repo = RideRepository(client=client, rides_collection=settings.rides_collection, notifications_collection=settings.notifications_collection)
  return RideNotificationService(token_repo=token_repo, ride_repo=ride_repo, push_gateway=build_push_gateway(settings), chat_invalidates_tokens=settings.chat_invalidates_tokens)
