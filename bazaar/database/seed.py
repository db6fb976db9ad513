"""
bazaar.database.seed — Empty-Dataset Seeder
============================================

Writes the empty default for every dataset key on first startup so the
``datasets`` table always lists the full set of collections.

Idempotent — only inserts keys that don't already exist.  Data written by
the services or by an import is never overwritten.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine

from bazaar.constants import DATASET_DEFAULTS, empty_dataset
from bazaar.database.store import DatasetStore

logger = logging.getLogger(__name__)


def seed_datasets(engine: Engine) -> int:
    """Insert any missing dataset keys.  Returns the number inserted."""
    store = DatasetStore(engine)
    inserted = 0
    for key in DATASET_DEFAULTS:
        if store.exists(key):
            continue
        store.save(key, empty_dataset(key))
        inserted += 1

    if inserted:
        logger.info("Seeded %d empty dataset(s).", inserted)
    return inserted
