"""Firestore access for rides and ride join notifications."""

from __future__ import annotations

import logging

from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from pydantic import ValidationError

from ride_notifier.schema.events import Ride, RideParticipant

logger = logging.getLogger(__name__)


class RideRepository:
  """Read rides and flag processed join notifications."""

  def __init__(self, *, client: AsyncClient, rides_collection: str = "rides", notifications_collection: str = "ride_notifications") -> None:
    self._client = client
    self._rides_collection = rides_collection
    self._notifications_collection = notifications_collection

  async def get_ride(self, ride_id: str) -> Ride | None:
    """Fetch a ride; None when it is missing, empty or not a ride document.

    Participant entries are validated one by one: an entry without a usable
    `userId` is logged and dropped while the rest of the ride still counts.
    """
    snapshot = await self._client.collection(self._rides_collection).document(ride_id).get()
    if not snapshot.exists:
      return None

    data = snapshot.to_dict()
    if not data:
      return None

    raw_participants = data.get("participants")
    if isinstance(raw_participants, list):
      data = {**data, "participants": _valid_participants(ride_id, raw_participants)}

    try:
      return Ride.model_validate(data)
    except ValidationError as exc:
      logger.warning("Ride %s has an unexpected shape; ignoring it. errors=%s", ride_id, exc.error_count())
      return None

  async def mark_notification_processed(self, notification_id: str, *, stamp: bool = True) -> None:
    """Set `processed` (and `processedAt` when `stamp`) on a join notification."""
    fields: dict[str, object] = {"processed": True}
    if stamp:
      fields["processedAt"] = firestore.SERVER_TIMESTAMP
    await self._client.collection(self._notifications_collection).document(notification_id).update(fields)


def _valid_participants(ride_id: str, entries: list[object]) -> list[RideParticipant]:
  participants: list[RideParticipant] = []
  for index, entry in enumerate(entries):
    try:
      participants.append(RideParticipant.model_validate(entry))
    except ValidationError:
      logger.warning("Ride %s participant #%d has no usable userId; skipping it.", ride_id, index)
  return participants
