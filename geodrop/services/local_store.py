"""
In-memory data store that mimics the parts of Firestore and Cloud Storage
this service uses. Used when no Firebase credentials are found, and by tests.
Optionally persists collections as JSON files so data survives restarts.
"""

import copy
import json
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud.firestore import ArrayUnion, Increment


_DATETIME_KEY = "$datetime"


def _json_serial(obj):
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, datetime):
        return {_DATETIME_KEY: obj.isoformat()}
    raise TypeError(f"Type {type(obj)} not serializable")


def _json_restore(obj: dict) -> Any:
    """Turn tagged timestamps back into datetimes so ordering keeps working."""
    if set(obj) == {_DATETIME_KEY}:
        return datetime.fromisoformat(obj[_DATETIME_KEY])
    return obj


def _apply_transform(current: Any, value: Any) -> Any:
    if isinstance(value, Increment):
        return (current or 0) + value.value
    if isinstance(value, ArrayUnion):
        merged = list(current or [])
        for item in value.values:
            if item not in merged:
                merged.append(item)
        return merged
    return value


def _set_path(doc: dict, path: str, value: Any) -> None:
    """Set a dotted field path, applying Firestore transforms."""
    parts = path.split(".")
    target = doc
    for part in parts[:-1]:
        nested = target.get(part)
        if not isinstance(nested, dict):
            nested = {}
            target[part] = nested
        target = nested
    target[parts[-1]] = _apply_transform(target.get(parts[-1]), value)


def _get_path(doc: dict, path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class LocalStore:
    """Dict-backed data store that mimics Firestore operations."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.RLock()
        self._data_dir = Path(data_dir) if data_dir else None

        if self._data_dir:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            self._load_data()

    def _load_data(self):
        """Load every persisted collection from the data dir."""
        for path in self._data_dir.glob("*.json"):
            with open(path) as f:
                self.collections[path.stem] = json.load(f, object_hook=_json_restore)

    def _persist(self, collection_name: str):
        """Write a collection to disk as JSON when persistence is enabled."""
        if not self._data_dir:
            return
        path = self._data_dir / f"{collection_name}.json"
        docs = self.collections.get(collection_name, {})
        with open(path, "w") as f:
            json.dump(docs, f, indent=2, default=_json_serial)

    def collection(self, name: str) -> "CollectionRef":
        with self._lock:
            if name not in self.collections:
                self.collections[name] = {}
        return CollectionRef(self, name)

    def batch(self) -> "WriteBatch":
        return WriteBatch(self)


class WriteBatch:
    """Mimics a Firestore write batch: nothing is applied until commit."""

    def __init__(self, store: LocalStore):
        self._store = store
        self._deletes: List["DocumentRef"] = []

    def delete(self, doc_ref: "DocumentRef") -> "WriteBatch":
        self._deletes.append(doc_ref)
        return self

    def commit(self) -> list:
        with self._store._lock:
            touched = set()
            for ref in self._deletes:
                self._store.collections[ref._name].pop(ref.id, None)
                touched.add(ref._name)
            for name in touched:
                self._store._persist(name)
        committed = list(self._deletes)
        self._deletes = []
        return committed


class AggregationResult:
    """Mimics a Firestore aggregation result."""

    def __init__(self, alias: str, value: int):
        self.alias = alias
        self.value = value


class CountQuery:
    """Mimics ``query.count()``."""

    def __init__(self, query: "CollectionRef", alias: Optional[str]):
        self._query = query
        self._alias = alias or "count"

    def get(self) -> List[List[AggregationResult]]:
        return [[AggregationResult(self._alias, len(self._query.get()))]]


class CollectionRef:
    """Mimics Firestore collection reference and query."""

    def __init__(self, store: LocalStore, name: str):
        self._store = store
        self._data = store.collections[name]
        self._name = name
        self._filters = []
        self._order_by = None
        self._limit_val = None

    def _copy(self) -> "CollectionRef":
        new_ref = CollectionRef(self._store, self._name)
        new_ref._filters = list(self._filters)
        new_ref._order_by = self._order_by
        new_ref._limit_val = self._limit_val
        return new_ref

    def document(self, doc_id: Optional[str] = None) -> "DocumentRef":
        return DocumentRef(self._store, self._name, doc_id or uuid.uuid4().hex)

    def where(self, field: str, op: str, value) -> "CollectionRef":
        new_ref = self._copy()
        new_ref._filters.append((field, op, value))
        return new_ref

    def order_by(self, field: str, direction: str = "ASCENDING") -> "CollectionRef":
        new_ref = self._copy()
        new_ref._order_by = (field, direction)
        return new_ref

    def limit(self, count: int) -> "CollectionRef":
        new_ref = self._copy()
        new_ref._limit_val = count
        return new_ref

    def count(self, alias: Optional[str] = None) -> CountQuery:
        return CountQuery(self, alias)

    def get(self) -> List["DocumentSnapshot"]:
        with self._store._lock:
            results = [(doc_id, copy.deepcopy(doc)) for doc_id, doc in self._data.items()]

        for field, op, value in self._filters:
            filtered = []
            for doc_id, doc in results:
                doc_val = _get_path(doc, field)
                if doc_val is None:
                    continue
                if op == "==" and doc_val == value:
                    filtered.append((doc_id, doc))
                elif op == "!=" and doc_val != value:
                    filtered.append((doc_id, doc))
                elif op == ">=" and doc_val >= value:
                    filtered.append((doc_id, doc))
                elif op == "<=" and doc_val <= value:
                    filtered.append((doc_id, doc))
                elif op == ">" and doc_val > value:
                    filtered.append((doc_id, doc))
                elif op == "<" and doc_val < value:
                    filtered.append((doc_id, doc))
                elif op == "in" and doc_val in value:
                    filtered.append((doc_id, doc))
                elif op == "array_contains" and isinstance(doc_val, list) and value in doc_val:
                    filtered.append((doc_id, doc))
            results = filtered

        if self._order_by:
            field, direction = self._order_by
            with_field = [r for r in results if _get_path(r[1], field) is not None]
            with_field.sort(
                key=lambda r: _get_path(r[1], field),
                reverse=direction == "DESCENDING",
            )
            results = with_field

        if self._limit_val:
            results = results[: self._limit_val]

        return [DocumentSnapshot(doc_id, doc) for doc_id, doc in results]


class DocumentRef:
    """Mimics Firestore document reference."""

    def __init__(self, store: LocalStore, collection_name: str, doc_id: str):
        self._store = store
        self._name = collection_name
        self._id = doc_id

    @property
    def id(self):
        return self._id

    @property
    def _data(self) -> Dict[str, dict]:
        return self._store.collections.setdefault(self._name, {})

    def get(self) -> "DocumentSnapshot":
        with self._store._lock:
            doc = self._data.get(self._id)
            return DocumentSnapshot(self._id, copy.deepcopy(doc))

    def set(self, data: dict, merge: bool = False):
        with self._store._lock:
            if merge and self._id in self._data:
                target = self._data[self._id]
            else:
                target = {}
                self._data[self._id] = target
            for key, value in data.items():
                target[key] = _apply_transform(target.get(key), value)
            self._store._persist(self._name)

    def update(self, data: dict):
        with self._store._lock:
            if self._id not in self._data:
                raise NotFound(f"No document to update: {self._name}/{self._id}")
            doc = self._data[self._id]
            for path, value in data.items():
                _set_path(doc, path, value)
            self._store._persist(self._name)

    def delete(self):
        with self._store._lock:
            self._data.pop(self._id, None)
            self._store._persist(self._name)


class DocumentSnapshot:
    """Mimics Firestore document snapshot."""

    def __init__(self, doc_id: str, data: Optional[dict]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return self._data


class LocalBlobStore:
    """In-memory stand-in for a Cloud Storage bucket."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, path: str, content: bytes = b"") -> None:
        with self._lock:
            self.blobs[path] = content

    def delete(self, path: str) -> None:
        with self._lock:
            if path not in self.blobs:
                raise FileNotFoundError(f"No such object: {path}")
            del self.blobs[path]


# ── Singletons ────────────────────────────────────────────────────

_local_store: Optional[LocalStore] = None
_local_blob_store: Optional[LocalBlobStore] = None


def get_local_store(data_dir: Optional[str] = None) -> LocalStore:
    """Get or create the singleton LocalStore instance."""
    global _local_store
    if _local_store is None:
        _local_store = LocalStore(Path(data_dir) if data_dir else None)
    return _local_store


def get_local_blob_store() -> LocalBlobStore:
    """Get or create the singleton LocalBlobStore instance."""
    global _local_blob_store
    if _local_blob_store is None:
        _local_blob_store = LocalBlobStore()
    return _local_blob_store
