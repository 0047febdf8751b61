"""Pydantic models and enums shared by the sources, resolver and pivot.

These models define the expected schema for raw contact records, the
precomputed Gold rows, and the aggregated cells the pivot is built from.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from contact_snapshot.academic_year import month_key_of

DEFAULT_CONTACT_TYPE = "general"
UNKNOWN_COUNSELOR = "Unknown"


class Role(str, Enum):
    """Caller-supplied role; admins see every counselor, counselors only themselves."""
    ADMIN = "admin"
    COUNSELOR = "counselor"


class ContactType(str, Enum):
    """Known contact types, declared in canonical display order."""
    MEETING = "meeting"
    PHONE_CALL = "phone_call"
    ZOOM_MEETING = "zoom_meeting"
    EMAIL = "email"
    PARENT_CONTACT = "parent_contact"
    INTERVENTION = "intervention"
    FOLLOW_UP = "follow_up"
    GENERAL = "general"
    ADVISING_PLAN = "advising_plan"

    @property
    def label(self) -> str:
        return CONTACT_TYPE_LABELS[self]


CONTACT_TYPE_LABELS = {
    ContactType.MEETING: "Meeting",
    ContactType.PHONE_CALL: "Phone Call",
    ContactType.ZOOM_MEETING: "Zoom Meeting",
    ContactType.EMAIL: "Email",
    ContactType.PARENT_CONTACT: "Parent Contact",
    ContactType.INTERVENTION: "Intervention",
    ContactType.FOLLOW_UP: "Follow-Up",
    ContactType.GENERAL: "General",
    ContactType.ADVISING_PLAN: "Advising Plan",
}

_CANONICAL_RANK = {t.value: i for i, t in enumerate(ContactType)}


def contact_type_sort_key(contact_type: str) -> tuple[int, str]:
    """Sort key placing known types in canonical order, unknown ones after, A→Z."""
    return (_CANONICAL_RANK.get(contact_type, len(_CANONICAL_RANK)), contact_type)


def contact_type_label(contact_type: str) -> str:
    """Display label for a type; unknown types are title-cased from their key."""
    try:
        return ContactType(contact_type).label
    except ValueError:
        return contact_type.replace("_", " ").title()


def _default_type(v: object) -> object:
    if v is None or (isinstance(v, str) and not v.strip()):
        return DEFAULT_CONTACT_TYPE
    return v


ContactTypeKey = Annotated[str, BeforeValidator(_default_type)]


class ContactRecord(BaseModel):
    """One logged contact event (raw fallback input).

    Attributes:
        counselor_id: Counselor who logged the contact.
        counselor_name: Display name resolved from profiles ("Unknown" if absent).
        occurred_at: When the contact happened.
        contact_type: Contact type key; defaults to "general".
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    counselor_id: str = Field(..., min_length=1)
    counselor_name: str = UNKNOWN_COUNSELOR
    occurred_at: datetime
    contact_type: ContactTypeKey = DEFAULT_CONTACT_TYPE

    @property
    def month(self) -> str:
        return f"{self.occurred_at.year:04d}-{self.occurred_at.month:02d}"


class AggregatedCell(BaseModel):
    """Contact count for one (counselor, month, type) triple."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    counselor_id: str = Field(..., min_length=1)
    counselor_name: str = UNKNOWN_COUNSELOR
    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    contact_type: ContactTypeKey = DEFAULT_CONTACT_TYPE
    count: int = Field(..., ge=1)


class GoldContactSnapshot(BaseModel):
    """Gold row: monthly contact counts per school, counselor and type."""
    model_config = ConfigDict(extra="ignore")
    school_id: str | None = None
    counselor_id: str
    counselor_name: str | None = None
    month: str
    contact_type: str | None = None
    contact_count: int = Field(..., ge=1)

    @field_validator("month", mode="before")
    @classmethod
    def _month_key(cls, v: object) -> object:
        return month_key_of(v) or v

    def to_cell(self) -> AggregatedCell:
        return AggregatedCell(
            counselor_id=self.counselor_id,
            counselor_name=self.counselor_name or UNKNOWN_COUNSELOR,
            month=self.month,
            contact_type=self.contact_type,
            count=self.contact_count,
        )
