"""Snapshot and document storage."""

from releaselog.storage.snapshot import (
    SnapshotWriter,
    load_advisories,
    load_features,
    load_snapshot,
    read_json_document,
    write_json_document,
)

__all__ = [
    "SnapshotWriter",
    "load_advisories",
    "load_features",
    "load_snapshot",
    "read_json_document",
    "write_json_document",
]
