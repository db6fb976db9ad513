"""
bazaar.services.import_service — Legacy JSON Import
====================================================

Loads a directory of flat JSON files (``users.json``, ``conversations.json``,
``user-stats.json``, …) into the dataset store.  Keys may be camelCase or
snake_case; every record is normalised through its dataclass so the store
only ever holds the current shape.

Each file found **replaces** the corresponding dataset.  Missing or empty
files are skipped and leave the existing dataset alone.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from bazaar.database.models import DatasetKey
from bazaar.database.store import DatasetStore, decode_dataset
from bazaar.engine.records import (
    Conversation,
    GamificationLogEntry,
    Opportunity,
    UserNotification,
    UserProfile,
    VolunteerApplication,
    VolunteerStats,
)

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")

# Legacy field names that don't map onto ours by case conversion alone
_ALIASES: dict[DatasetKey, dict[str, str]] = {
    DatasetKey.USERS: {"display_name": "name"},
    DatasetKey.OPPORTUNITIES: {"organization": "organization_name"},
}

_RECORD_TYPES: dict[DatasetKey, Callable[[dict], Any]] = {
    DatasetKey.USERS: UserProfile.from_dict,
    DatasetKey.OPPORTUNITIES: Opportunity.from_dict,
    DatasetKey.APPLICATIONS: VolunteerApplication.from_dict,
    DatasetKey.CONVERSATIONS: Conversation.from_dict,
    DatasetKey.GAMIFICATION_LOG: GamificationLogEntry.from_dict,
    DatasetKey.NOTIFICATIONS: UserNotification.from_dict,
}


def snake_case(name: str) -> str:
    """``opportunityTitle`` → ``opportunity_title``; snake_case passes through."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def _snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {snake_case(str(k)): _snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_snake_keys(item) for item in value]
    return value


def _read(path: Path) -> Any | None:
    if not path.exists():
        logger.info("No %s in import directory, skipping", path.name)
        return None
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        logger.info("%s is empty, skipping", path.name)
        return None
    return decode_dataset(text)


def _normalise_records(key: DatasetKey, raw: Any) -> list[dict]:
    # users.json is keyed by email in the legacy layout
    items = list(raw.values()) if isinstance(raw, dict) else list(raw)
    aliases = _ALIASES.get(key, {})
    build = _RECORD_TYPES[key]

    records: list[dict] = []
    for item in items:
        data = _snake_keys(item)
        for old, new in aliases.items():
            if old in data and new not in data:
                data[new] = data.pop(old)
        records.append(build(data).to_dict())
    return records


def _embedded_stats(users_raw: Any) -> dict[str, dict]:
    """Stats carried on legacy user records (``user.stats``), by user id."""
    items = users_raw.values() if isinstance(users_raw, dict) else users_raw
    found: dict[str, dict] = {}
    for item in items:
        data = _snake_keys(item)
        if data.get("stats") and data.get("id"):
            found[str(data["id"])] = VolunteerStats.from_dict(data["stats"]).to_dict()
    return found


def import_json_directory(store: DatasetStore, path: str | Path) -> dict[str, int]:
    """Import every recognised ``<dataset>.json`` under *path*.

    Returns a mapping of dataset key → number of records written.

    Raises
    ------
    FileNotFoundError
        If *path* is not a directory.
    """
    directory = Path(path)
    if not directory.is_dir():
        raise FileNotFoundError(f"Import directory not found: {directory.resolve()}")

    counts: dict[str, int] = {}
    users_raw = None

    for key in _RECORD_TYPES:
        raw = _read(directory / f"{key.value}.json")
        if raw is None:
            continue
        if key == DatasetKey.USERS:
            users_raw = raw
        records = _normalise_records(key, raw)
        store.save(key, records)
        counts[key.value] = len(records)
        logger.info("Imported %d record(s) into %s", len(records), key.value)

    stats_raw = _read(directory / f"{DatasetKey.USER_STATS.value}.json")
    stats: dict[str, dict] = _embedded_stats(users_raw) if users_raw is not None else {}
    if stats_raw is not None:
        for user_id, entry in stats_raw.items():
            stats[str(user_id)] = VolunteerStats.from_dict(_snake_keys(entry)).to_dict()
    if stats:
        store.save(DatasetKey.USER_STATS, stats)
        counts[DatasetKey.USER_STATS.value] = len(stats)
        logger.info("Imported stats for %d user(s)", len(stats))

    return counts
