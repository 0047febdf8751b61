"""Contact count sources (precomputed snapshot and raw-record fallback)."""

from contact_snapshot.sources.base import ContactSource
from contact_snapshot.sources.precomputed import PrecomputedSource
from contact_snapshot.sources.raw_records import RawRecordSource

__all__ = ["ContactSource", "PrecomputedSource", "RawRecordSource"]
