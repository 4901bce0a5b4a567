"""Ingestion pipeline: build the graph, label it, write the snapshot."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from releaselog.extraction import CommitGraphBuilder
from releaselog.models import CommitGraph, IngestionConfig, ProvisionalVersion
from releaselog.storage import SnapshotWriter, write_json_document
from releaselog.versioning import (
    DescribeVersionAssigner,
    VersionAssigner,
    compute_provisional_versions,
)

logger = structlog.get_logger(__name__)


@dataclass
class IngestionResult:
    """Summary of a completed ingestion run."""

    snapshot_path: Path
    commits: int
    tags: int
    branches: int
    provisional_versions: Dict[str, ProvisionalVersion] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


class IngestionPipeline:
    """Runs one ingestion end to end.

    Nothing is written until every step has succeeded. Any error raised by
    the builder or an assigner propagates and leaves the previous snapshot
    untouched.
    """

    def __init__(
        self,
        config: IngestionConfig,
        builder: Optional[CommitGraphBuilder] = None,
        writer: Optional[SnapshotWriter] = None,
    ) -> None:
        self.config = config
        self.builder = builder or CommitGraphBuilder(config)
        self.writer = writer or SnapshotWriter(config.output_path)

    def assign_versions(self, graph: CommitGraph) -> CommitGraph:
        """Label every commit with the configured strategy."""
        if self.config.version_strategy == "describe":
            assigner = DescribeVersionAssigner(
                graph,
                self.builder.repo,
                tag_pattern=self.config.tag_pattern,
                workers=self.config.describe_workers,
                batch_size=self.config.describe_batch_size,
            )
            return assigner.assign()
        return VersionAssigner(graph).assign()

    def run(self) -> IngestionResult:
        """Run the ingestion.

        Raises:
            UpstreamFetchError: If upstream history cannot be fetched
            GraphIntegrityError: If a commit has no tagged ancestor
        """
        logger.info("ingestion_started", origin=self.config.origin, base_tag=self.config.base_tag)

        graph = self.builder.build()
        labelled = self.assign_versions(graph)

        manifest = self.builder.read_manifest()
        provisional = {}
        if manifest is not None:
            provisional = compute_provisional_versions(
                labelled.refs.tags,
                labelled.refs.branches,
                manifest,
                development_branch=self.config.development_branch,
            )

        # The snapshot goes last; a failed run must not publish it
        if manifest is not None and self.config.version_support_path is not None:
            write_json_document(self.config.version_support_path, manifest)
        snapshot_path = self.writer.write(labelled, provisional)

        warnings = list(dict.fromkeys(graph.warnings + self.builder.warnings))
        logger.info("ingestion_completed", commits=len(labelled.commits), warnings=len(warnings))

        return IngestionResult(
            snapshot_path=snapshot_path,
            commits=len(labelled.commits),
            tags=len(labelled.refs.tags),
            branches=len(labelled.refs.branches),
            provisional_versions=provisional,
            warnings=warnings,
        )
