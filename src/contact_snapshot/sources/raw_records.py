"""Fallback source: fold raw contact notes into cells at report time.

Only used when the precomputed snapshot cannot be read. Notes are fetched
from the start of the window onward, joined to counselor names from the
profiles collection, and grouped in-process.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from contact_snapshot.academic_year import CalendarMonth
from contact_snapshot.aggregate.fold import fold_records
from contact_snapshot.errors import MalformedRecord, SourceError
from contact_snapshot.models import AggregatedCell, ContactRecord, UNKNOWN_COUNSELOR
from contact_snapshot.sources.base import ContactSource

log = logging.getLogger(__name__)

NOTE_PROJECTION = {"_id": False, "counselor_id": True, "note_type": True, "created_at": True}


def parse_record(doc: Mapping[str, Any], names: Mapping[str, str]) -> ContactRecord:
    """Turn a raw note document into a `ContactRecord`.

    Args:
        doc: Note document with `counselor_id`, `created_at` and optional `note_type`.
        names: Counselor id → display name.

    Raises:
        MalformedRecord: if the note has no timestamp or counselor, or they do not parse.
    """
    occurred_at = doc.get("created_at")
    if occurred_at is None or occurred_at == "":
        raise MalformedRecord("note has no created_at")
    counselor_id = doc.get("counselor_id")
    if counselor_id is None or counselor_id == "":
        raise MalformedRecord("note has no counselor_id")

    counselor_id = str(counselor_id)
    try:
        return ContactRecord(
            counselor_id=counselor_id,
            counselor_name=names.get(counselor_id) or UNKNOWN_COUNSELOR,
            occurred_at=occurred_at,
            contact_type=doc.get("note_type"),
        )
    except ValidationError as e:
        raise MalformedRecord(str(e)) from e


class RawRecordSource(ContactSource):
    """Aggregates raw notes on the fly."""

    name = "raw_records"

    def __init__(self, notes: Any, profiles: Any) -> None:
        self.notes = notes
        self.profiles = profiles

    def _query(self, window: Sequence[CalendarMonth], scope_id: str) -> dict[str, Any]:
        start = window[0].start
        # created_at may be stored as a BSON date or as an ISO string
        return {
            "school_id": scope_id,
            "$or": [
                {"created_at": {"$gte": start}},
                {"created_at": {"$gte": start.strftime("%Y-%m-%d")}},
            ],
        }

    def _counselor_names(self, counselor_ids: set[str]) -> dict[str, str]:
        if not counselor_ids:
            return {}
        docs = self.profiles.find(
            {"id": {"$in": sorted(counselor_ids)}},
            {"_id": False, "id": True, "full_name": True},
        )
        return {str(d["id"]): d["full_name"] for d in docs if d.get("id") and d.get("full_name")}

    def fetch(
        self,
        window: Sequence[CalendarMonth],
        scope_id: str,
    ) -> list[AggregatedCell]:
        try:
            docs = list(self.notes.find(self._query(window, scope_id), NOTE_PROJECTION))
            names = self._counselor_names(
                {str(d["counselor_id"]) for d in docs if d.get("counselor_id") not in (None, "")}
            )
        except PyMongoError as e:
            raise SourceError(f"raw notes unavailable: {e}", source=self.name) from e

        records: list[ContactRecord] = []
        dropped = 0
        for doc in docs:
            try:
                records.append(parse_record(doc, names))
            except MalformedRecord as e:
                dropped += 1
                log.debug("Dropping malformed note: %s", e)

        cells = fold_records(records, window)
        log.info(
            "Folded %d notes into %d cells for school=%s (dropped=%d)",
            len(records),
            len(cells),
            scope_id,
            dropped,
        )
        return cells
