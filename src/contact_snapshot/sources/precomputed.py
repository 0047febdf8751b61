"""Primary source: the precomputed contact snapshot (Gold) collection."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from contact_snapshot.academic_year import CalendarMonth, window_keys
from contact_snapshot.errors import PrimarySourceUnavailable
from contact_snapshot.models import AggregatedCell, GoldContactSnapshot
from contact_snapshot.sources.base import ContactSource

log = logging.getLogger(__name__)


class PrecomputedSource(ContactSource):
    """Reads counts already grouped by `build_gold` for one school.

    A snapshot collection that was never built counts as unavailable, so the
    resolver recomputes from raw notes; a built snapshot with no rows for the
    school is a valid empty result.
    """

    name = "precomputed"

    def __init__(self, collection: Any) -> None:
        self.collection = collection

    def is_deployed(self) -> bool:
        """Whether the snapshot collection exists in its database."""
        name = self.collection.name
        return name in self.collection.database.list_collection_names(filter={"name": name})

    def fetch(
        self,
        window: Sequence[CalendarMonth],
        scope_id: str,
    ) -> list[AggregatedCell]:
        query = {"school_id": scope_id, "month": {"$in": sorted(window_keys(window))}}
        try:
            if not self.is_deployed():
                raise PrimarySourceUnavailable(
                    f"precomputed snapshot {self.collection.name!r} has not been built",
                    source=self.name,
                )
            docs = list(self.collection.find(query, {"_id": False}))
        except PyMongoError as e:
            raise PrimarySourceUnavailable(
                f"precomputed snapshot unavailable: {e}", source=self.name
            ) from e

        cells: list[AggregatedCell] = []
        for doc in docs:
            try:
                cells.append(GoldContactSnapshot.model_validate(doc).to_cell())
            except ValidationError as e:
                log.warning("Skipping invalid snapshot row %r: %s", doc, e)

        log.info("Precomputed snapshot returned %d rows for school=%s", len(cells), scope_id)
        return cells
