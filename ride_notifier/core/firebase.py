import logging

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud.firestore import AsyncClient

from ride_notifier.config import Settings

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Settings) -> firebase_admin.App | None:
  """Initializes the Firebase Admin SDK and returns the default app."""
  if firebase_admin._apps:
    return firebase_admin.get_app()

  if not settings.firebase_project_id:
    logger.warning("Firebase Project ID not set. Firebase Admin SDK not initialized.")
    return None

  try:
    if settings.firebase_service_account_json_path:
      cred = credentials.Certificate(settings.firebase_service_account_json_path)
      app = firebase_admin.initialize_app(cred, {"projectId": settings.firebase_project_id})
    else:
      # Use default credentials (e.g. Google Application Default Credentials)
      app = firebase_admin.initialize_app(options={"projectId": settings.firebase_project_id})
  except Exception as e:
    logger.error(f"Failed to initialize Firebase Admin SDK: {e}")
    return None

  logger.info("Firebase Admin SDK initialized successfully.")
  return app


def get_firestore_client(settings: Settings) -> AsyncClient | None:
  """Returns an async Firestore client. Lazily initializes if needed."""
  app = initialize_firebase(settings)
  if app is None:
    return None

  try:
    return firestore_async.client(app)
  except Exception as e:
    logger.error(f"Failed to get Firestore client: {e}")
    return None
