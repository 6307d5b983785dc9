"""
Hierarchical key-value document store.

Paths look like "matches/match_1/state/currentStriker". Each top-level
record ("collection/id") is one row of the `documents` table; anything
deeper is stored inside that row's JSON value. Subscribers registered on a
path get the full current value at that path after every write touching it.

Writes are last-write-wins: there is no compare-and-swap.
"""
import copy
import logging
import threading
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from crease.errors import StoreError
from crease.models.document import Document

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


def split_path(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]


def _overlaps(a: list[str], b: list[str]) -> bool:
    """True if one path is an ancestor of (or equal to) the other"""
    n = min(len(a), len(b))
    return a[:n] == b[:n]


def _get_in(value: Any, parts: list[str]) -> Any:
    for part in parts:
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _set_in(doc: Any, parts: list[str], value: Any) -> dict:
    root = doc if isinstance(doc, dict) else {}
    node = root
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if value is None:
                return root
            child = {}
            node[part] = child
        node = child
    if value is None:
        node.pop(parts[-1], None)
    else:
        node[parts[-1]] = value
    return root


class DocumentStore:
    """
    Store collaborator used by the engines: one-shot reads, whole-value
    writes, merge updates (which double as atomic multi-path writes) and
    push subscriptions.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._write_lock = threading.RLock()
        self._subscribers: dict[int, tuple[list[str], Callback]] = {}
        self._next_token = 0

    # Reads

    def get(self, path: str) -> Any:
        """Current value at `path`, or None if nothing is stored there"""
        parts = split_path(path)
        if not parts:
            raise ValueError("Cannot read the store root")
        try:
            with self._session_factory() as session:
                if len(parts) == 1:
                    rows = (
                        session.query(Document)
                        .filter_by(collection=parts[0])
                        .order_by(Document.path)
                        .all()
                    )
                    if not rows:
                        return None
                    return {row.path.split("/", 1)[1]: copy.deepcopy(row.value) for row in rows}

                row = session.get(Document, "/".join(parts[:2]))
                if row is None:
                    return None
                return copy.deepcopy(_get_in(row.value, parts[2:]))
        except SQLAlchemyError as e:
            logger.error("Read of %s failed: %s", path, e)
            raise StoreError(f"Read of {path} failed") from e

    # Writes

    def set(self, path: str, value: Any) -> None:
        """Replace the value at `path`. None deletes it."""
        self._write({path: value})

    def update(self, path: str, values: dict[str, Any]) -> None:
        """
        Merge `values` into `path`. Keys may themselves be nested paths, so
        update("", {"matches/m1": ..., "tournaments/t1/fixtures/f1/status": "LIVE"})
        writes several records in one transaction.
        """
        base = split_path(path)
        self._write({"/".join(base + split_path(key)): value for key, value in values.items()})

    def delete(self, path: str) -> None:
        self._write({path: None})

    def _write(self, writes: dict[str, Any]) -> None:
        normalized = []
        for path, value in writes.items():
            parts = split_path(path)
            if not parts:
                raise ValueError("Cannot write the store root")
            normalized.append((parts, copy.deepcopy(value)))

        with self._write_lock:
            try:
                with self._session_factory() as session:
                    docs: dict[str, Any] = {}
                    for parts, value in normalized:
                        if len(parts) == 1:
                            self._replace_collection(session, parts[0], value, docs)
                            continue
                        key = "/".join(parts[:2])
                        if len(parts) == 2:
                            docs[key] = value
                        else:
                            docs[key] = _set_in(self._load(session, key, docs), parts[2:], value)
                    self._persist(session, docs)
                    session.commit()
            except SQLAlchemyError as e:
                logger.error("Write of %s failed: %s", ", ".join(writes), e)
                raise StoreError(f"Write of {', '.join(writes)} failed") from e

        self._notify([parts for parts, _ in normalized])

    def _load(self, session: Session, key: str, docs: dict[str, Any]) -> Any:
        if key not in docs:
            row = session.get(Document, key)
            docs[key] = copy.deepcopy(row.value) if row else None
        return docs[key]

    def _replace_collection(self, session: Session, collection: str, value: Any, docs: dict[str, Any]) -> None:
        for row in session.query(Document).filter_by(collection=collection).all():
            docs[row.path] = None
        if isinstance(value, dict):
            for child, child_value in value.items():
                docs[f"{collection}/{child}"] = child_value

    def _persist(self, session: Session, docs: dict[str, Any]) -> None:
        for key, value in docs.items():
            row = session.get(Document, key)
            if value is None or value == {}:
                if row is not None:
                    session.delete(row)
            elif row is None:
                session.add(Document(path=key, collection=key.split("/", 1)[0], value=value))
            else:
                row.value = value

    # Subscriptions

    def subscribe(self, path: str, callback: Callback, immediate: bool = True) -> Callable[[], None]:
        """
        Call `callback(value)` with the full value at `path` whenever a write
        touches it. Returns a function that cancels the subscription.
        """
        parts = split_path(path)
        with self._write_lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = (parts, callback)

        if immediate:
            callback(self.get(path))

        def unsubscribe() -> None:
            with self._write_lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def _notify(self, written: list[list[str]]) -> None:
        with self._write_lock:
            subscribers = list(self._subscribers.values())

        for sub_parts, callback in subscribers:
            if not any(_overlaps(sub_parts, parts) for parts in written):
                continue
            sub_path = "/".join(sub_parts)
            try:
                callback(self.get(sub_path))
            except Exception:
                # A broken listener must not fail the writer
                logger.exception("Subscriber for %s failed", sub_path)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


_default_store: Optional[DocumentStore] = None
_default_store_lock = threading.Lock()


def get_store() -> DocumentStore:
    """Process-wide store bound to the configured database (FastAPI dependency)"""
    global _default_store
    if _default_store is None:
        # Sync routes run in a threadpool; every request must share one store
        with _default_store_lock:
            if _default_store is None:
                from crease.database import SessionLocal, init_db
                init_db()
                _default_store = DocumentStore(SessionLocal)
    return _default_store
