"""Schemas for trigger payloads and the ride documents they reference."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError, field_validator

from ride_notifier.core.errors import MalformedEventError


class RideJoinEvent(BaseModel):
  """A rider joined a ride; written to `ride_notifications/{notificationId}`."""

  type: StrictStr = "new_rider"
  ride_id: StrictStr = Field(alias="rideId", min_length=1)
  joiner_id: StrictStr = Field(alias="joinerId", min_length=1)
  joiner_name: StrictStr = Field(alias="joinerName")
  creator_id: StrictStr = Field(alias="creatorId", min_length=1)
  destination: StrictStr
  participant_ids: list[StrictStr] = Field(default_factory=list, alias="participantIds")
  processed: StrictBool = False
  processed_at: datetime | None = Field(default=None, alias="processedAt")
  model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

  @field_validator("participant_ids", mode="before")
  @classmethod
  def _none_as_empty(cls, value: Any) -> Any:
    # Older clients wrote an explicit null for solo rides.
    return [] if value is None else value

  def recipient_ids(self) -> list[str]:
    """Creator and participants minus the joiner, deduplicated in order."""
    candidates = [self.creator_id, *self.participant_ids]
    return list(dict.fromkeys(user_id for user_id in candidates if user_id != self.joiner_id))


class ChatMessageEvent(BaseModel):
  """A message posted to `rides/{rideId}/chat/{messageId}`."""

  sender_id: StrictStr = Field(alias="senderId", min_length=1)
  sender_name: StrictStr = Field(alias="senderName")
  message: StrictStr
  model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class RideParticipant(BaseModel):
  user_id: StrictStr = Field(alias="userId", min_length=1)
  model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Ride(BaseModel):
  """The subset of a ride document the chat flow reads."""

  participants: list[RideParticipant] = Field(default_factory=list)
  model_config = ConfigDict(extra="ignore", frozen=True)

  @field_validator("participants", mode="before")
  @classmethod
  def _none_as_empty(cls, value: Any) -> Any:
    return [] if value is None else value

  def recipient_ids(self, *, exclude: str) -> list[str]:
    """Participant ids other than `exclude`, deduplicated in order."""
    return list(dict.fromkeys(participant.user_id for participant in self.participants if participant.user_id != exclude))


def parse_ride_join_event(data: Any) -> RideJoinEvent:
  """Validate a ride join payload, raising `MalformedEventError` on mismatch."""
  try:
    return RideJoinEvent.model_validate(data)
  except ValidationError as exc:
    raise MalformedEventError("ride_join", list(exc.errors())) from exc


def parse_chat_message_event(data: Any) -> ChatMessageEvent:
  """Validate a chat message payload, raising `MalformedEventError` on mismatch."""
  try:
    return ChatMessageEvent.model_validate(data)
  except ValidationError as exc:
    raise MalformedEventError("chat_message", list(exc.errors())) from exc
