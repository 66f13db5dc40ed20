"""Test configuration and in-memory stand-ins for Firestore and FCM."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from typing import Any  # noqa: E402

import pytest  # noqa: E402
from google.cloud import firestore  # noqa: E402

from ride_notifier.notifications.contracts import MulticastResult, PushMessage, SendResponse  # noqa: E402
from ride_notifier.notifications.ride_repo import RideRepository  # noqa: E402
from ride_notifier.notifications.user_token_repo import UserTokenRepository  # noqa: E402


class FakeSnapshot:
  def __init__(self, reference: FakeDocumentRef, data: dict[str, Any] | None) -> None:
    self.reference = reference
    self.id = reference.id
    self._data = data

  @property
  def exists(self) -> bool:
    return self._data is not None

  def to_dict(self) -> dict[str, Any] | None:
    return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
  def __init__(self, store: FakeFirestore, collection: str, doc_id: str) -> None:
    self._store = store
    self.collection_name = collection
    self.id = doc_id

  @property
  def key(self) -> tuple[str, str]:
    return (self.collection_name, self.id)

  async def get(self) -> FakeSnapshot:
    self._store.reads.append(self.key)
    failure = self._store.read_failures.get(self.key)
    if failure is not None:
      raise failure
    data = self._store.docs.get(self.key)
    return FakeSnapshot(self, dict(data) if data is not None else None)

  async def update(self, fields: dict[str, Any]) -> None:
    self._store.updates.append((self.key, dict(fields)))
    self._store.apply(self.key, fields)


class FakeQuery:
  def __init__(self, store: FakeFirestore, collection: str, field_filter: Any) -> None:
    self._store = store
    self._collection = collection
    self._filter = field_filter

  async def get(self) -> list[FakeSnapshot]:
    self._store.queries.append((self._collection, self._filter.field_path, self._filter.op_string, self._filter.value))
    if self._store.query_failure is not None:
      raise self._store.query_failure
    matches = []
    for (collection, doc_id), data in self._store.docs.items():
      if collection == self._collection and data.get(self._filter.field_path) == self._filter.value:
        matches.append(FakeSnapshot(FakeDocumentRef(self._store, collection, doc_id), dict(data)))
    return matches


class FakeCollection:
  def __init__(self, store: FakeFirestore, name: str) -> None:
    self._store = store
    self._name = name

  def document(self, doc_id: str) -> FakeDocumentRef:
    return FakeDocumentRef(self._store, self._name, doc_id)

  def where(self, *, filter: Any) -> FakeQuery:  # noqa: A002
    return FakeQuery(self._store, self._name, filter)


class FakeBatch:
  def __init__(self, store: FakeFirestore) -> None:
    self._store = store
    self._writes: list[tuple[tuple[str, str], dict[str, Any]]] = []

  def update(self, reference: FakeDocumentRef, fields: dict[str, Any]) -> None:
    self._writes.append((reference.key, dict(fields)))

  async def commit(self) -> None:
    if self._store.commit_failure is not None:
      raise self._store.commit_failure
    for key, fields in self._writes:
      self._store.apply(key, fields)
    self._store.commits.append(list(self._writes))


class FakeFirestore:
  """Just enough of `google.cloud.firestore.AsyncClient` for the repositories."""

  def __init__(self) -> None:
    self.docs: dict[tuple[str, str], dict[str, Any]] = {}
    self.reads: list[tuple[str, str]] = []
    self.updates: list[tuple[tuple[str, str], dict[str, Any]]] = []
    self.queries: list[tuple[str, str, str, Any]] = []
    self.commits: list[list[tuple[tuple[str, str], dict[str, Any]]]] = []
    self.read_failures: dict[tuple[str, str], Exception] = {}
    self.query_failure: Exception | None = None
    self.commit_failure: Exception | None = None

  def add(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
    self.docs[(collection, doc_id)] = dict(data)

  def collection(self, name: str) -> FakeCollection:
    return FakeCollection(self, name)

  def batch(self) -> FakeBatch:
    return FakeBatch(self)

  def apply(self, key: tuple[str, str], fields: dict[str, Any]) -> None:
    if key not in self.docs:
      raise LookupError(f"No document to update: {key}")
    doc = self.docs[key]
    for field_name, value in fields.items():
      if value is firestore.DELETE_FIELD:
        doc.pop(field_name, None)
      else:
        doc[field_name] = value


class RecordingGateway:
  """Push gateway double: records messages and fails chosen tokens."""

  def __init__(self) -> None:
    self.sent: list[PushMessage] = []
    self.error_codes: dict[str, str] = {}
    self.raise_error: Exception | None = None

  async def send_multicast(self, message: PushMessage) -> MulticastResult:
    self.sent.append(message)
    if self.raise_error is not None:
      raise self.raise_error
    responses = []
    for token in message.tokens:
      code = self.error_codes.get(token)
      if code is None:
        responses.append(SendResponse(token=token, success=True))
      else:
        responses.append(SendResponse(token=token, success=False, error_code=code, error_message=f"rejected: {code}"))
    return MulticastResult(responses=responses)


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def fake_db() -> FakeFirestore:
  return FakeFirestore()


@pytest.fixture
def gateway() -> RecordingGateway:
  return RecordingGateway()


@pytest.fixture
def token_repo(fake_db) -> UserTokenRepository:
  return UserTokenRepository(client=fake_db)


@pytest.fixture
def ride_repo(fake_db) -> RideRepository:
  return RideRepository(client=fake_db)
