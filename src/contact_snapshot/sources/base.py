"""Base class for contact count sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from contact_snapshot.academic_year import CalendarMonth
from contact_snapshot.models import AggregatedCell


class ContactSource(ABC):
    """Something that can produce aggregated contact cells for a school."""

    name: str = "source"

    @abstractmethod
    def fetch(
        self,
        window: Sequence[CalendarMonth],
        scope_id: str,
    ) -> list[AggregatedCell]:
        """Return aggregated cells for `scope_id` covering `window`.

        Implementations may return rows outside the window; the resolver
        drops them.

        Raises:
            SourceError: if the underlying store cannot be read.
        """
