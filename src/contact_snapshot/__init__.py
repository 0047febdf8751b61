"""contact_snapshot package.

Turns logged counselor contacts (meetings, calls, emails, ...) into a
counselor × month × contact-type pivot for the August–June academic year.

Architecture:
- Academic-year window → aggregation resolver → pivot model → view controller
- The resolver prefers the precomputed Gold aggregate stored in MongoDB and
  falls back to folding raw notes when that collection cannot be read
- Dask builds the Gold aggregate, pandas folds the raw fallback
- Pydantic models validate records and aggregated cells
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
