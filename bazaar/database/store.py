"""
bazaar.database.store — Whole-Dataset Load / Save
==================================================

The single persistence seam every service goes through::

    store = DatasetStore(engine)
    convos = store.load(DatasetKey.CONVERSATIONS, [])
    convos.append(...)
    store.save(DatasetKey.CONVERSATIONS, convos)

``load`` always decodes a fresh copy, so callers may mutate what they get.
``save`` replaces the whole dataset in one transaction.  Nothing here locks
across a load/save pair: two requests that read-modify-write the same key
concurrently resolve last-writer-wins at dataset granularity.  Callers keep
that window short by loading immediately before they mutate.

Encoding
--------
``datetime`` values are written as ISO-8601 UTC strings with millisecond
precision and a trailing ``Z`` (``2026-01-15T12:00:00.000Z``).  Naive datetimes
are taken to be UTC.  Loading is plain JSON: strings stay strings, and each
record's ``from_dict`` parses its own timestamp fields.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bazaar.database.engine import get_session
from bazaar.database.models import Dataset
from bazaar.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Timestamp codec
# ---------------------------------------------------------------------------
def format_timestamp(value: datetime) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:MM:SS.fffZ``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_dataset(value: Any) -> str:
    return json.dumps(value, default=_default)


def decode_dataset(text: str) -> Any:
    return json.loads(text)


# ---------------------------------------------------------------------------
# DatasetStore
# ---------------------------------------------------------------------------
class DatasetStore:
    """Key → JSON document store over the ``datasets`` table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def load(self, key: str, default: T) -> T:
        """Return the dataset stored under *key*, or *default* if never written.

        Raises
        ------
        PersistenceError
            If the database read fails or the stored document is corrupt.
        """
        try:
            with Session(self.engine) as session:
                row = session.get(Dataset, str(key))
                raw = row.value_json if row is not None else None
        except SQLAlchemyError as exc:
            logger.exception("Failed to load dataset %s", key)
            raise PersistenceError(f"Failed to load dataset '{key}'.") from exc

        if not raw:
            return default
        try:
            return decode_dataset(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.exception("Dataset %s holds invalid JSON", key)
            raise PersistenceError(f"Dataset '{key}' is corrupt.") from exc

    def save(self, key: str, value: Any) -> None:
        """Replace the dataset under *key* with *value* in one transaction.

        Raises
        ------
        PersistenceError
            If *value* can't be encoded or the database write fails.
        """
        try:
            payload = encode_dataset(value)
        except (TypeError, ValueError) as exc:
            logger.exception("Dataset %s could not be encoded", key)
            raise PersistenceError(f"Dataset '{key}' could not be encoded.") from exc

        try:
            with get_session(self.engine) as session:
                row = session.get(Dataset, str(key))
                if row is None:
                    session.add(Dataset(key=str(key), value_json=payload))
                else:
                    row.value_json = payload
        except SQLAlchemyError as exc:
            logger.exception("Failed to save dataset %s", key)
            raise PersistenceError(f"Failed to save dataset '{key}'.") from exc

    def exists(self, key: str) -> bool:
        try:
            with Session(self.engine) as session:
                return session.get(Dataset, str(key)) is not None
        except SQLAlchemyError as exc:
            logger.exception("Failed to probe dataset %s", key)
            raise PersistenceError(f"Failed to load dataset '{key}'.") from exc
