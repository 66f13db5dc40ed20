"""Service configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from ride_notifier.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_PRODUCTION_ENVIRONMENTS = {"production", "prod"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the ride notifier service."""

  environment: str
  debug: bool
  log_dir: Path
  log_max_bytes: int
  log_backup_count: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  push_enabled: bool
  chat_invalidates_tokens: bool
  event_secret: str | None
  users_collection: str
  rides_collection: str
  notifications_collection: str


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_positive_int(name: str, default: str, *, allow_zero: bool = False) -> int:
  raw = os.getenv(name, default)
  try:
    value = int(raw)
  except ValueError as exc:
    raise ValueError(f"{name} must be an integer.") from exc

  if value < 0 or (value == 0 and not allow_zero):
    qualifier = "zero or a positive integer" if allow_zero else "a positive integer"
    raise ValueError(f"{name} must be {qualifier}.")

  return value


def _collection_name(name: str, default: str) -> str:
  value = _optional_str(os.getenv(name)) or default
  if "/" in value:
    raise ValueError(f"{name} must be a top-level collection name without '/'.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("RIDE_NOTIFIER_ENV", "development").strip().lower()
  debug = _parse_bool(os.getenv("RIDE_NOTIFIER_DEBUG"))

  log_dir_raw = _optional_str(os.getenv("RIDE_NOTIFIER_LOG_DIR"))
  log_dir = Path(log_dir_raw) if log_dir_raw else Path(__file__).resolve().parent.parent / "logs"
  log_max_bytes = _parse_positive_int("RIDE_NOTIFIER_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = _parse_positive_int("RIDE_NOTIFIER_LOG_BACKUP_COUNT", "10", allow_zero=True)

  # Push stays on unless explicitly disabled; the null gateway covers local runs.
  push_enabled = _parse_bool(os.getenv("RIDE_NOTIFIER_PUSH_ENABLED"), default=True)
  chat_invalidates_tokens = _parse_bool(os.getenv("RIDE_NOTIFIER_CHAT_INVALIDATES_TOKENS"))
  event_secret = _optional_str(os.getenv("RIDE_NOTIFIER_EVENT_SECRET"))

  # Event routes are reachable from the network in deployed environments.
  if environment in _PRODUCTION_ENVIRONMENTS and not event_secret:
    raise ValueError("RIDE_NOTIFIER_EVENT_SECRET must be set in production.")

  return Settings(
    environment=environment,
    debug=debug,
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    push_enabled=push_enabled,
    chat_invalidates_tokens=chat_invalidates_tokens,
    event_secret=event_secret,
    users_collection=_collection_name("RIDE_NOTIFIER_USERS_COLLECTION", "users"),
    rides_collection=_collection_name("RIDE_NOTIFIER_RIDES_COLLECTION", "rides"),
    notifications_collection=_collection_name("RIDE_NOTIFIER_NOTIFICATIONS_COLLECTION", "ride_notifications"),
  )
