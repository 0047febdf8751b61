"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the MongoDB connection details and collection names from the
environment (a `.env` at the project root is loaded first).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Container for report configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        mongo_tls: Whether to connect with TLS (certifi CA bundle).
        snapshot_collection: Precomputed counselor × month × type aggregate.
        notes_collection: Raw contact notes, one document per contact.
        profiles_collection: User profiles used to resolve counselor names.
    """
    mongo_uri: str
    mongo_db: str
    mongo_tls: bool
    snapshot_collection: str
    notes_collection: str
    profiles_collection: str


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `MONGO_DB` is set but blank.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "gradtrack").strip()
    mongo_tls = os.getenv("MONGO_TLS", "true").strip().lower() not in _FALSY

    if not mongo_db:
        raise RuntimeError(
            "MONGO_DB must not be blank. Set it in .env "
            "(example: 'MONGO_DB=gradtrack')."
        )

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        mongo_tls=mongo_tls,
        snapshot_collection=os.getenv("SNAPSHOT_COLLECTION", "gold_contact_snapshot"),
        notes_collection=os.getenv("NOTES_COLLECTION", "student_notes"),
        profiles_collection=os.getenv("PROFILES_COLLECTION", "profiles"),
    )
