import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ride_notifier.core.logging import _initialize_logging
from ride_notifier.notifications.factory import build_notification_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and build the notification service once per process."""
  from ride_notifier.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("ride_notifier.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except Exception:
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  try:
    app.state.notification_service = build_notification_service(settings)
    logger.info("Ride notification service ready (environment=%s).", settings.environment)
  except Exception:
    # Event routes answer 503 until the service can be built, so the trigger redelivers.
    app.state.notification_service = None
    logger.error("Failed to build the ride notification service.", exc_info=True)

  yield

  service = app.state.notification_service
  if service is not None:
    await service.drain()
    logger.info("Background token cleanup drained; shutting down.")
