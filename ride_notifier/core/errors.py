"""Error types shared across the ride notifier."""

from __future__ import annotations

from typing import Any


class RideNotifierError(Exception):
  """Base class for all ride notifier failures."""


class MalformedEventError(RideNotifierError):
  """Raised when a trigger payload does not match its event schema."""

  def __init__(self, kind: str, errors: list[dict[str, Any]]) -> None:
    fields = ", ".join(".".join(str(part) for part in error.get("loc", ())) or "<root>" for error in errors)
    super().__init__(f"Malformed {kind} event: {fields or 'invalid payload'}")
    self.kind = kind
    self.errors = errors
