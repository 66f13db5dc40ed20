"""Local `.env` support so the notifier can run outside Cloud Run."""

from __future__ import annotations

import os
from pathlib import Path

_QUOTES = ("'", '"')


def default_env_path() -> Path:
  """`.env` next to pyproject.toml."""

  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_line(line: str) -> tuple[str, str] | None:
  """Split one `.env` line into (name, value); None for blanks, comments and junk."""
  text = line.strip()
  if not text or text.startswith("#"):
    return None

  text = text.removeprefix("export ").lstrip()
  name, sep, value = text.partition("=")
  name = name.strip()
  if not sep or not name:
    return None

  value = value.strip()
  if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
    value = value[1:-1]
  return name, value


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Apply a `.env` file to `os.environ`, returning the names that were set.

  Variables already present in the process environment win unless `override`.
  A missing file is not an error.
  """
  if not path.is_file():
    return []

  applied: list[str] = []
  with path.open(encoding="utf-8") as handle:
    for line in handle:
      parsed = parse_env_line(line)
      if parsed is None:
        continue
      name, value = parsed
      if name in os.environ and not override:
        continue
      os.environ[name] = value
      applied.append(name)
  return applied
