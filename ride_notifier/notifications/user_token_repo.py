"""Firestore access for user device tokens."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from google.cloud.firestore_v1 import FieldFilter

logger = logging.getLogger(__name__)

FCM_TOKEN_FIELD = "fcmToken"


def redact_token(token: str) -> str:
  """Return a log-safe prefix of a device token."""
  return f"{token[:20]}..."


class UserTokenRepository:
  """Resolve and invalidate push tokens stored on user documents."""

  def __init__(self, *, client: AsyncClient, collection: str = "users") -> None:
    self._client = client
    self._collection = collection

  async def get_token(self, user_id: str) -> str | None:
    """Return the user's token, or None when the record or field is absent."""
    snapshot = await self._client.collection(self._collection).document(user_id).get()
    if not snapshot.exists:
      return None

    data = snapshot.to_dict() or {}
    token = data.get(FCM_TOKEN_FIELD)
    if not isinstance(token, str) or not token:
      return None

    return token

  async def resolve_tokens(self, user_ids: Iterable[str]) -> list[str]:
    """Collect tokens for `user_ids`, skipping users whose lookup fails."""
    tokens: list[str] = []
    # Sequential lookups; a failing user must not abort the rest of the batch.
    for user_id in user_ids:
      try:
        token = await self.get_token(user_id)
      except Exception as exc:  # noqa: BLE001
        logger.error("Error getting token for user %s: %s", user_id, exc, exc_info=True)
        continue

      if token is None:
        logger.debug("No push token registered for user %s", user_id)
        continue

      tokens.append(token)

    return tokens

  async def invalidate_token(self, token: str) -> int:
    """Delete `fcmToken` from every user holding `token`; returns the number cleared.

    Failures are logged and reported as zero so callers can fire and forget.
    """
    try:
      query = self._client.collection(self._collection).where(filter=FieldFilter(FCM_TOKEN_FIELD, "==", token))
      snapshots = await query.get()
      if not snapshots:
        logger.info("Invalid token %s not found on any user; nothing to remove.", redact_token(token))
        return 0

      # One batch so every holder loses the token together.
      batch = self._client.batch()
      for snapshot in snapshots:
        batch.update(snapshot.reference, {FCM_TOKEN_FIELD: firestore.DELETE_FIELD})
      await batch.commit()
    except Exception as exc:  # noqa: BLE001
      logger.error("Error removing invalid token %s: %s", redact_token(token), exc, exc_info=True)
      return 0

    logger.info("Removed invalid token %s from %d user(s)", redact_token(token), len(snapshots))
    return len(snapshots)
