"""Shared FastAPI dependencies for event delivery routes."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from ride_notifier.config import Settings, get_settings
from ride_notifier.notifications.service import RideNotificationService

logger = logging.getLogger(__name__)


def get_notification_service(request: Request) -> RideNotificationService:
  """Return the service built once at startup."""
  service = getattr(request.app.state, "notification_service", None)
  if service is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Notification service is not initialized.")
  return service


async def verify_event_secret(
  settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None), x_ride_notifier_secret: str | None = Header(default=None)
) -> None:
  """Require the shared event secret when one is configured."""
  if not settings.event_secret:
    return

  # Eventarc OIDC may occupy Authorization, so the dedicated header is checked first.
  shared_secret_valid = secrets.compare_digest(x_ride_notifier_secret or "", settings.event_secret)
  bearer_valid = secrets.compare_digest(authorization or "", f"Bearer {settings.event_secret}")
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Unauthorized event delivery attempt.")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid event secret.")
