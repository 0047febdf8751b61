"""Utilities for loading Gold DataFrames into MongoDB.

Gold datasets are small (aggregated) and are materialized to pandas before
being upserted. Every row is stamped with the build time so rows left over
from an earlier build (for example a count that dropped to zero) can be
pruned once the new rows are in place.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
import logging
from pymongo import UpdateOne

log = logging.getLogger(__name__)


def load_gold(
    ddf: Any,
    collection: Any,
    key_fields: list[str],
    prune: bool = True,
) -> int:
    """Upsert a Gold aggregation into `collection`.

    Strategy:
    - Compute Dask DF → Pandas (gold is small)
    - Upsert row-by-row on `key_fields` (deterministic, stable)
    - Optionally delete rows not touched by this build

    Args:
        ddf: Dask (or pandas) DataFrame representing the gold dataset.
        collection: Target PyMongo collection.
        key_fields: List of fields used as the upsert key.
        prune: Remove rows stamped by earlier builds.

    Returns:
        Number of rows written.
    """
    name = getattr(collection, "name", "<collection>")
    log.info("Generating gold collection: %s", name)

    pdf = ddf.compute() if hasattr(ddf, "compute") else ddf
    built_at = datetime.now(timezone.utc)

    ops = []
    for row in pdf.to_dict("records"):
        row["built_at"] = built_at
        query = {k: row[k] for k in key_fields}
        ops.append(UpdateOne(query, {"$set": row}, upsert=True))

    if ops:
        collection.bulk_write(ops, ordered=False)
    else:
        log.warning("No rows to load for %s", name)

    if prune:
        result = collection.delete_many({"built_at": {"$lt": built_at}})
        log.info("Pruned %d stale rows from %s", result.deleted_count, name)

    log.info("Gold load complete for %s: %d rows", name, len(ops))
    return len(ops)
