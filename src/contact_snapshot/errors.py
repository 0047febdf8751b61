"""Exceptions raised while resolving contact counts.

`SourceError` is the only failure a caller of the resolver needs to handle:
it means no trustworthy cell set could be produced for the window. The
primary-source variant is normally absorbed by the resolver's fallback.
"""

from __future__ import annotations


class SourceError(RuntimeError):
    """A contact source could not produce a complete result."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class PrimarySourceUnavailable(SourceError):
    """The precomputed aggregate could not be read; the fallback should run."""


class FallbackSourceError(SourceError):
    """Both the precomputed aggregate and the raw-record fallback failed."""


class MalformedRecord(ValueError):
    """A raw contact document that cannot be turned into a ContactRecord."""
