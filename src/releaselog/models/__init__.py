"""Data models for changelog ingestion and queries."""

from releaselog.models.auxiliary import FeatureAnnouncement, SecurityAdvisory
from releaselog.models.commit import (
    FULL_HASH_LENGTH,
    Commit,
    CommitGraph,
    ProvisionalVersion,
    RefTable,
    Snapshot,
)
from releaselog.models.config import IngestionConfig, Settings

__all__ = [
    "FULL_HASH_LENGTH",
    "Commit",
    "CommitGraph",
    "ProvisionalVersion",
    "RefTable",
    "Snapshot",
    "FeatureAnnouncement",
    "SecurityAdvisory",
    "IngestionConfig",
    "Settings",
]
