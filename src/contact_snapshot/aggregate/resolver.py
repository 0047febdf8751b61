"""Resolve contact counts for a window, precomputed first, raw fallback second.

The precomputed snapshot is preferred whenever it can be read, even if it
returns zero rows. Only a failure to read it triggers the raw fallback,
and the fallback is never issued speculatively. If the fallback fails too
the whole resolution fails: a partial cell set would understate totals in a
way the view cannot distinguish from "no contacts".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from contact_snapshot.academic_year import CalendarMonth, window_keys
from contact_snapshot.aggregate.fold import coalesce_cells
from contact_snapshot.errors import FallbackSourceError, PrimarySourceUnavailable, SourceError
from contact_snapshot.models import AggregatedCell
from contact_snapshot.sources.base import ContactSource

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Cells resolved for one fetch cycle.

    Attributes:
        cells: Unique (counselor, month, type) cells inside the window.
        source: Name of the source that produced them.
        window: The window the cells were resolved for.
        used_fallback: True when the primary source was unavailable.
    """
    cells: tuple[AggregatedCell, ...]
    source: str
    window: tuple[CalendarMonth, ...]
    used_fallback: bool = False


class AggregationResolver:
    """Two-tier resolution over a primary and a fallback `ContactSource`."""

    def __init__(self, primary: ContactSource, fallback: ContactSource) -> None:
        self.primary = primary
        self.fallback = fallback

    def resolve(self, window: Sequence[CalendarMonth], scope_id: str) -> Resolution:
        """Return the resolved cells for `scope_id` over `window`.

        Raises:
            FallbackSourceError: if the primary source is unavailable and the
                fallback cannot be read either.
        """
        window = tuple(window)
        try:
            cells = self.primary.fetch(window, scope_id)
            source = self.primary.name
            used_fallback = False
        except PrimarySourceUnavailable as e:
            log.warning("Primary source %s unavailable, falling back: %s", self.primary.name, e)
            try:
                cells = self.fallback.fetch(window, scope_id)
            except SourceError as fe:
                raise FallbackSourceError(
                    f"contact data unavailable: {fe}", source=self.fallback.name
                ) from fe
            source = self.fallback.name
            used_fallback = True

        keys = window_keys(window)
        in_window = [c for c in cells if c.month in keys]
        if len(in_window) != len(cells):
            log.debug("Ignored %d rows outside the window", len(cells) - len(in_window))

        return Resolution(
            cells=tuple(coalesce_cells(in_window)),
            source=source,
            window=window,
            used_fallback=used_fallback,
        )
