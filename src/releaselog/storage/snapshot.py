"""Snapshot and auxiliary document persistence.

Documents are written atomically: the content goes to a temporary file in
the target directory first and is then renamed over the destination, so a
failed run never leaves a partial document behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from releaselog.models import (
    CommitGraph,
    FeatureAnnouncement,
    ProvisionalVersion,
    SecurityAdvisory,
    Snapshot,
)

logger = structlog.get_logger(__name__)


def write_json_document(path: Path, data: Any) -> Path:
    """Atomically write a JSON document.

    Args:
        path: Destination file
        data: JSON-serialisable content

    Returns:
        The destination path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".json.tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise

    return path


def read_json_document(path: Path) -> Any:
    """Read a JSON document.

    Raises:
        FileNotFoundError: If the document does not exist
        ValueError: If the document is not valid JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON document {path}: {e}") from e


class SnapshotWriter:
    """Serializes a labelled commit graph into the snapshot document."""

    def __init__(self, output_path: Path) -> None:
        self.output_path = Path(output_path)

    def write(
        self,
        graph: CommitGraph,
        provisional_versions: Optional[Dict[str, ProvisionalVersion]] = None,
    ) -> Path:
        """Write the snapshot for a graph.

        Args:
            graph: Commit graph with assigned versions
            provisional_versions: Upcoming versions and their branches

        Returns:
            Path of the written snapshot
        """
        snapshot = Snapshot.from_graph(graph, provisional_versions)
        path = write_json_document(self.output_path, snapshot.to_document())
        logger.info(
            "snapshot_written",
            path=str(path),
            commits=len(snapshot.commits),
            tags=len(snapshot.refs.tags),
            branches=len(snapshot.refs.branches),
        )
        return path


def load_snapshot(path: Path) -> Snapshot:
    """Load a snapshot document.

    Raises:
        FileNotFoundError: If the snapshot does not exist
        ValueError: If the document is malformed
    """
    data = read_json_document(path)
    try:
        return Snapshot.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid snapshot document {path}: {e}") from e


def load_features(path: Path) -> List[FeatureAnnouncement]:
    """Load the feature-announcement document; a missing file is empty."""
    path = Path(path)
    if not path.exists():
        logger.info("features_document_missing", path=str(path))
        return []
    return [FeatureAnnouncement.model_validate(item) for item in read_json_document(path)]


def load_advisories(path: Path) -> List[SecurityAdvisory]:
    """Load the security-advisory document; a missing file is empty."""
    path = Path(path)
    if not path.exists():
        logger.info("advisories_document_missing", path=str(path))
        return []
    return [SecurityAdvisory.model_validate(item) for item in read_json_document(path)]
