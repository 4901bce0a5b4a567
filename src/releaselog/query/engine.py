"""Ref resolution and range queries over a loaded snapshot."""

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import structlog

from releaselog.errors import (
    AmbiguousRef,
    RefResolution,
    RefResolutionError,
    Resolved,
    UnknownRef,
)
from releaselog.models import (
    FULL_HASH_LENGTH,
    Commit,
    FeatureAnnouncement,
    SecurityAdvisory,
    Snapshot,
)
from releaselog.query.filters import (
    CommitFilter,
    count_commits_by_type,
    filter_advisories_by_commits,
    filter_commits,
    filter_features_by_commits,
    sort_commits_by_date,
)
from releaselog.storage import load_advisories, load_features, load_snapshot
from releaselog.versioning.semver import sort_tags_descending

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RefOption:
    """A selectable ref: a branch or a tag."""

    value: str
    label: str
    type: str


@dataclass(frozen=True)
class Changelog:
    """Everything needed to render one changelog range."""

    start_ref: Optional[str]
    end_ref: str
    commits: List[Commit]
    visible_commits: List[Commit]
    counts: Dict[str, int]
    features: List[FeatureAnnouncement] = field(default_factory=list)
    advisories: List[SecurityAdvisory] = field(default_factory=list)


class ChangelogQueryEngine:
    """Answers ref and range questions against one immutable snapshot.

    The engine never mutates the snapshot or the auxiliary documents; every
    query is a pure function of its arguments, so one engine can serve
    concurrent callers without locking.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        features: Sequence[FeatureAnnouncement] = (),
        advisories: Sequence[SecurityAdvisory] = (),
        default_end_ref: str = "latest",
    ) -> None:
        """Initialize the engine.

        Args:
            snapshot: Loaded snapshot document
            features: Feature announcements
            advisories: Security advisories
            default_end_ref: Ref used when no end ref is given
        """
        self.snapshot = snapshot
        self.features: Tuple[FeatureAnnouncement, ...] = tuple(features)
        self.advisories: Tuple[SecurityAdvisory, ...] = tuple(advisories)
        self.default_end_ref = default_end_ref
        self._sorted_tags: Tuple[str, ...] = tuple(sort_tags_descending(snapshot.refs.tags))

    @classmethod
    def from_files(
        cls,
        snapshot_path: Path,
        features_path: Optional[Path] = None,
        advisories_path: Optional[Path] = None,
    ) -> "ChangelogQueryEngine":
        """Load a snapshot and, optionally, the auxiliary documents."""
        snapshot = load_snapshot(snapshot_path)
        features = load_features(features_path) if features_path else []
        advisories = load_advisories(advisories_path) if advisories_path else []
        logger.info(
            "snapshot_loaded",
            path=str(snapshot_path),
            commits=len(snapshot.commits),
            features=len(features),
            advisories=len(advisories),
        )
        return cls(snapshot, features, advisories)

    @property
    def base_tag(self) -> str:
        return self.snapshot.base_tag

    @property
    def total_commits(self) -> int:
        return len(self.snapshot.commits)

    @property
    def default_start_ref(self) -> str:
        return self._sorted_tags[0] if self._sorted_tags else ""

    def get_commit(self, commit_hash: str) -> Optional[Commit]:
        return self.snapshot.commits.get(commit_hash)

    def resolve(self, ref: str) -> RefResolution:
        """Resolve a ref to a commit without raising.

        Tags win over branches, branches over hashes. A ref shorter than a
        full hash is matched as a prefix of every commit hash.

        Returns:
            ``Resolved``, ``UnknownRef`` or ``AmbiguousRef``
        """
        if not ref:
            return UnknownRef(ref)

        refs = self.snapshot.refs
        if ref in refs.tags:
            return Resolved(ref, refs.tags[ref])
        if ref in refs.branches:
            return Resolved(ref, refs.branches[ref])

        if len(ref) < FULL_HASH_LENGTH:
            matches = sorted(h for h in self.snapshot.commits if h.startswith(ref))
            if not matches:
                return UnknownRef(ref)
            if len(matches) > 1:
                return AmbiguousRef(ref, tuple(matches))
            return Resolved(ref, matches[0])

        if ref not in self.snapshot.commits:
            return UnknownRef(ref)
        return Resolved(ref, ref)

    def resolve_ref(self, ref: str) -> str:
        """Resolve a ref to a full commit hash.

        Raises:
            RefResolutionError: If the ref is unknown or ambiguous
        """
        resolution = self.resolve(ref)
        if not resolution.ok:
            raise RefResolutionError(resolution)
        return resolution.hash

    def traverse_parents(self, commit_hash: str) -> FrozenSet[str]:
        """All commits reachable from a commit over parent edges, itself included.

        Hashes that are not in the snapshot end the walk silently.
        """
        commits = self.snapshot.commits
        visited = set()
        queue = deque([commit_hash])

        while queue:
            current = queue.popleft()
            if not current or current in visited or current not in commits:
                continue
            visited.add(current)
            queue.extend(p for p in commits[current].parents if p not in visited)

        return frozenset(visited)

    def get_commits_between(self, start_ref: str, end_ref: str) -> List[Commit]:
        """Commits reachable from end_ref but not from start_ref.

        The result is unordered; callers impose their own order.

        Raises:
            RefResolutionError: If either ref does not resolve
        """
        start_hash = self.resolve_ref(start_ref)
        end_hash = self.resolve_ref(end_ref)

        between = self.traverse_parents(end_hash) - self.traverse_parents(start_hash)
        return [self.snapshot.commits[h] for h in between]

    def get_previous_version(self, ref: str) -> Optional[str]:
        """The newest tag strictly below a ref in its history.

        Raises:
            RefResolutionError: If the ref does not resolve
        """
        commit_hash = self.resolve_ref(ref)
        ancestors = self.traverse_parents(commit_hash) - {commit_hash}
        if not ancestors:
            return None

        tags = self.snapshot.refs.tags
        for tag in self._sorted_tags:
            if tags[tag] in ancestors:
                return tag
        return None

    def sorted_tags(self) -> List[RefOption]:
        """Tags in canonical descending version order."""
        return [RefOption(tag, tag, "tag") for tag in self._sorted_tags]

    def branches(self) -> List[RefOption]:
        return [RefOption(branch, branch, "branch") for branch in self.snapshot.refs.branches]

    def sorted_refs(self) -> List[RefOption]:
        """Branches first, then tags in canonical order."""
        return self.branches() + self.sorted_tags()

    def filter_features(self, commits: Sequence[Commit]) -> List[FeatureAnnouncement]:
        return filter_features_by_commits(self.features, commits, self.resolve)

    def filter_advisories(self, commits: Sequence[Commit]) -> List[SecurityAdvisory]:
        return filter_advisories_by_commits(self.advisories, commits)

    def changelog(
        self,
        end_ref: Optional[str] = None,
        start_ref: Optional[str] = None,
        commit_filter: Optional[CommitFilter] = None,
    ) -> Changelog:
        """Build the changelog for a range.

        Without a start ref the range starts at the previous version of the
        end ref, or covers the whole history of the end ref when there is no
        previous version. Counts, features and advisories describe the full
        range; the filter only narrows ``visible_commits``.

        Raises:
            RefResolutionError: If a ref does not resolve
        """
        end_ref = end_ref or self.default_end_ref
        if start_ref is None:
            start_ref = self.get_previous_version(end_ref)

        if start_ref is None:
            commits = [self.snapshot.commits[h] for h in self.traverse_parents(self.resolve_ref(end_ref))]
        else:
            commits = self.get_commits_between(start_ref, end_ref)

        ordered = sort_commits_by_date(commits, "desc")
        return Changelog(
            start_ref=start_ref,
            end_ref=end_ref,
            commits=ordered,
            visible_commits=filter_commits(ordered, commit_filter),
            counts=count_commits_by_type(ordered),
            features=self.filter_features(ordered),
            advisories=self.filter_advisories(ordered),
        )
