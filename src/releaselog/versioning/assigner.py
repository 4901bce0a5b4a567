"""Version label assignment for every retained commit."""

import asyncio
import concurrent.futures
import re
from collections import deque
from typing import Dict, Mapping, NamedTuple, Optional

import git
import structlog

from releaselog.concurrency.pool import BoundedWorkerPool
from releaselog.errors import GraphIntegrityError, UpstreamFetchError
from releaselog.models import CommitGraph
from releaselog.versioning.semver import is_release_tag

logger = structlog.get_logger(__name__)

DESCRIBE_RE = re.compile(r"^(?P<tag>.+)-(?P<distance>\d+)-g[0-9a-f]+$")


class NearestTag(NamedTuple):
    """The closest tagged ancestor of a commit."""

    tag: str
    distance: int

    @property
    def label(self) -> str:
        if self.distance:
            return f"{self.tag} +{self.distance}"
        return self.tag


def build_commit_to_tag(tag_targets: Mapping[str, str]) -> Dict[str, str]:
    """Invert tag -> hash, preferring strict ``vX.Y.Z`` tags per commit."""
    commit_to_tag: Dict[str, str] = {}
    for tag, commit_hash in tag_targets.items():
        if commit_hash not in commit_to_tag or is_release_tag(tag):
            commit_to_tag[commit_hash] = tag
    return commit_to_tag


class VersionAssigner:
    """Labels commits with their nearest tagged ancestor via BFS."""

    def __init__(self, graph: CommitGraph) -> None:
        """Initialize the assigner.

        Args:
            graph: Commit graph; tags are taken from ``graph.tag_targets``,
                falling back to the retained tag table
        """
        self.graph = graph
        self.commit_to_tag = build_commit_to_tag(graph.tag_targets or graph.refs.tags)
        self._cache: Dict[str, NearestTag] = {}

    def nearest_tag(self, commit_hash: str) -> NearestTag:
        """Find the nearest tagged ancestor of a commit.

        The distance is the number of distinct untagged commits visited by a
        breadth-first walk over parent edges, counting the commit itself and
        excluding the tagged commit that ends the walk. Parents that are not
        part of the graph are visited but have no edges.

        Raises:
            GraphIntegrityError: If no tagged ancestor exists
        """
        cached = self._cache.get(commit_hash)
        if cached is not None:
            return cached

        tag = self.commit_to_tag.get(commit_hash)
        if tag is not None:
            result = NearestTag(tag, 0)
            self._cache[commit_hash] = result
            return result

        visited = set()
        queue = deque([commit_hash])
        found: Optional[str] = None

        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            current_tag = self.commit_to_tag.get(current)
            if current_tag is not None:
                if found is None:
                    found = current_tag
                continue
            visited.add(current)
            commit = self.graph.commits.get(current)
            if commit is not None:
                queue.extend(commit.parents)

        if found is None:
            raise GraphIntegrityError(commit_hash)

        result = NearestTag(found, len(visited))
        self._cache[commit_hash] = result
        return result

    def assign(self) -> CommitGraph:
        """Label every commit and return the labelled graph.

        Raises:
            GraphIntegrityError: If any commit has no tagged ancestor
        """
        labels = {commit_hash: self.nearest_tag(commit_hash).label for commit_hash in self.graph.commits}
        logger.info("versions_assigned", commits=len(labels), tags=len(self.commit_to_tag))
        return self.graph.with_versions(labels)


def parse_describe(output: str) -> NearestTag:
    """Parse ``git describe --tags --long`` output into a nearest tag."""
    output = output.strip()
    match = DESCRIBE_RE.match(output)
    if not match:
        return NearestTag(output, 0)
    return NearestTag(match.group("tag"), int(match.group("distance")))


class DescribeVersionAssigner:
    """Labels commits by asking git for the nearest tag of each one.

    Calls run through a bounded worker pool in fully-joined batches. Any
    failed call fails the whole assignment.
    """

    def __init__(
        self,
        graph: CommitGraph,
        repo: git.Repo,
        tag_pattern: str = "v*",
        workers: int = 100,
        batch_size: int = 1000,
    ) -> None:
        self.graph = graph
        self.repo = repo
        self.tag_pattern = tag_pattern
        self.pool = BoundedWorkerPool(workers)
        self.batch_size = batch_size

    def _describe(self, commit_hash: str) -> NearestTag:
        try:
            output = self.repo.git.describe("--tags", "--long", "--match", self.tag_pattern, commit_hash)
        except git.GitCommandError as e:
            if "No names found" in str(e) or "No tags can describe" in str(e):
                raise GraphIntegrityError(commit_hash) from e
            raise UpstreamFetchError(f"git describe failed for {commit_hash}: {e}") from e
        return parse_describe(output)

    async def assign_async(self) -> CommitGraph:
        """Label every commit using batched concurrent describe calls.

        The blocking git calls run on a thread pool as wide as the worker
        pool, so every worker can have a call in flight.
        """
        loop = asyncio.get_running_loop()

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.pool.width) as executor:

            async def describe(commit_hash: str) -> NearestTag:
                return await loop.run_in_executor(executor, self._describe, commit_hash)

            results = await self.pool.run_batches(
                list(self.graph.commits),
                describe,
                self.batch_size,
            )

        labels = {commit_hash: nearest.label for commit_hash, nearest in results.items()}
        logger.info("versions_described", commits=len(labels), workers=self.pool.width)
        return self.graph.with_versions(labels)

    def assign(self) -> CommitGraph:
        """Synchronous wrapper around :meth:`assign_async`."""
        return asyncio.run(self.assign_async())
