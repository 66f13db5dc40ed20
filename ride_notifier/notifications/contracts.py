"""Contracts for push notification delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from ride_notifier.core.errors import RideNotifierError

INVALID_REGISTRATION_TOKEN = "messaging/invalid-registration-token"
REGISTRATION_TOKEN_NOT_REGISTERED = "messaging/registration-token-not-registered"

# Codes meaning the device token will never work again.
INVALID_TOKEN_ERROR_CODES = frozenset({INVALID_REGISTRATION_TOKEN, REGISTRATION_TOKEN_NOT_REGISTERED})


@dataclass(frozen=True)
class AndroidHints:
  """Android delivery hints for a push message."""

  channel_id: str
  priority: str = "default"
  default_sound: bool = True
  default_vibrate_timings: bool = False
  icon: str | None = None
  color: str | None = None


@dataclass(frozen=True)
class ApnsHints:
  """APNs `aps` dictionary hints."""

  sound: str = "default"
  badge: int | None = None


@dataclass(frozen=True)
class PushMessage:
  """Represents one multicast push payload."""

  tokens: tuple[str, ...]
  title: str
  body: str
  data: dict[str, str]
  android: AndroidHints
  apns: ApnsHints | None = None


@dataclass(frozen=True)
class SendResponse:
  """Delivery outcome for a single token."""

  token: str
  success: bool
  error_code: str | None = None
  error_message: str | None = None

  @property
  def token_is_invalid(self) -> bool:
    return not self.success and self.error_code in INVALID_TOKEN_ERROR_CODES


@dataclass(frozen=True)
class MulticastResult:
  """Per-token outcomes of a multicast send, in input order."""

  responses: list[SendResponse] = field(default_factory=list)

  @property
  def success_count(self) -> int:
    return sum(1 for response in self.responses if response.success)

  @property
  def failure_count(self) -> int:
    return len(self.responses) - self.success_count

  def failures(self) -> list[SendResponse]:
    return [response for response in self.responses if not response.success]


class PushGatewayError(RideNotifierError):
  """Raised when the multicast call itself fails."""


class PushGatewayUnavailableError(PushGatewayError):
  """Raised when the gateway cannot be used at all (e.g. Firebase not initialized)."""


class PushGateway(Protocol):
  """Delivery contract for multicast push sends."""

  async def send_multicast(self, message: PushMessage) -> MulticastResult:
    """Send one payload to every token and report per-token outcomes."""
