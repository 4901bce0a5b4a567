"""Commit graph assembly from upstream branch histories."""

import json
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, List, Optional, Set

import git
import structlog
from git import Repo

from releaselog.errors import UpstreamFetchError
from releaselog.models import Commit, CommitGraph, IngestionConfig, RefTable

logger = structlog.get_logger(__name__)


def commit_from_git(commit: git.Commit) -> Commit:
    """Convert a GitPython commit into a graph commit (version unassigned)."""
    message = commit.message.strip()
    subject, _, body = message.partition("\n")
    return Commit(
        hash=commit.hexsha,
        parents=[parent.hexsha for parent in commit.parents],
        author=commit.author.name or "",
        date=commit.committed_datetime,
        subject=subject.strip(),
        body=body.strip(),
    )


class CommitGraphBuilder:
    """Builds the commit DAG for every configured branch above the base tag.

    The builder keeps a bare mirror of the origin. Each run lists the
    upstream heads, fetches the selected branches and all tags into the
    mirror, then walks each branch down to the base tag.
    """

    def __init__(self, config: IngestionConfig) -> None:
        """Initialize the builder.

        Args:
            config: Ingestion configuration
        """
        self.config = config
        self.warnings: List[str] = []
        self._repo: Optional[Repo] = None

    @property
    def repo(self) -> Repo:
        """The bare mirror repository, created on first use."""
        if self._repo is None:
            self._repo = self._open_mirror(self.config.mirror_dir)
        return self._repo

    @staticmethod
    def _open_mirror(mirror_dir: Path) -> Repo:
        mirror_dir = Path(mirror_dir)
        if (mirror_dir / "HEAD").exists():
            try:
                return Repo(mirror_dir)
            except git.exc.InvalidGitRepositoryError as e:
                raise UpstreamFetchError(f"Invalid mirror repository: {mirror_dir}") from e
        mirror_dir.mkdir(parents=True, exist_ok=True)
        return Repo.init(mirror_dir, bare=True)

    def _warn(self, event: str, message: str, **context: str) -> None:
        self.warnings.append(message)
        logger.warning(event, **context)

    def list_remote_branches(self) -> Set[str]:
        """List the branch names that exist on the origin.

        Raises:
            UpstreamFetchError: If the origin cannot be reached
        """
        try:
            output = self.repo.git.ls_remote("--heads", self.config.origin)
        except git.GitCommandError as e:
            raise UpstreamFetchError(f"Could not reach origin {self.config.origin}: {e}") from e

        branches = set()
        for line in output.splitlines():
            _, _, ref = line.partition("\t")
            if ref.startswith("refs/heads/"):
                branches.add(ref[len("refs/heads/") :])
        return branches

    def select_branches(self, remote_branches: Set[str]) -> List[str]:
        """Pick the fixed heads followed by every matching release branch.

        Fixed heads missing upstream are skipped with a warning.
        """
        selected = []
        for branch in self.config.fixed_branches:
            if branch in remote_branches:
                selected.append(branch)
            else:
                self._warn(
                    "branch_missing_upstream",
                    f"Branch {branch} not found upstream, skipping",
                    branch=branch,
                )

        release_branches = sorted(
            branch
            for branch in remote_branches
            if fnmatchcase(branch, self.config.release_branch_pattern) and branch not in selected
        )
        return selected + release_branches

    def fetch(self, branches: List[str]) -> None:
        """Fetch the given branches and all tags into the mirror.

        Raises:
            UpstreamFetchError: If the fetch fails
        """
        refspecs = [f"+refs/heads/{branch}:refs/heads/{branch}" for branch in branches]
        refspecs.append("+refs/tags/*:refs/tags/*")

        logger.info("fetch_started", origin=self.config.origin, branches=len(branches))
        try:
            self.repo.git.fetch(self.config.origin, "--prune", *refspecs)
        except git.GitCommandError as e:
            raise UpstreamFetchError(f"Fetch from {self.config.origin} failed: {e}") from e
        logger.info("fetch_completed", origin=self.config.origin)

    def resolve_commit(self, rev: str) -> git.Commit:
        """Resolve a revision in the mirror to its commit.

        Raises:
            UpstreamFetchError: If the revision does not exist
        """
        try:
            return self.repo.commit(rev)
        except (git.BadName, ValueError) as e:
            raise UpstreamFetchError(f"Revision not found in mirror: {rev}") from e

    def collect_commits(self, branches: List[str]) -> Dict[str, Commit]:
        """Walk each branch down to the base tag and merge the results.

        The first occurrence of a hash wins; later duplicates are skipped.
        The base commit itself is kept as the floor of the window.
        """
        base_commit = self.resolve_commit(self.config.base_tag)
        commits: Dict[str, Commit] = {}

        for branch in branches:
            new = 0
            for git_commit in self.repo.iter_commits(f"{base_commit.hexsha}..refs/heads/{branch}"):
                if git_commit.hexsha not in commits:
                    commits[git_commit.hexsha] = commit_from_git(git_commit)
                    new += 1
            logger.info("branch_enumerated", branch=branch, new_commits=new)

        if base_commit.hexsha not in commits:
            commits[base_commit.hexsha] = commit_from_git(base_commit)

        logger.info("commits_collected", total=len(commits))
        return commits

    def collect_tags(self) -> Dict[str, str]:
        """Map every tag matching the tag pattern to its (peeled) commit."""
        tag_targets = {}
        for tag in self.repo.tags:
            if not fnmatchcase(tag.name, self.config.tag_pattern):
                continue
            try:
                tag_targets[tag.name] = tag.commit.hexsha
            except ValueError:
                # Tags of trees or blobs
                logger.debug("tag_skipped", tag=tag.name)
        return tag_targets

    def resolve_branches(self, branches: List[str]) -> Dict[str, str]:
        """Resolve each branch to its tip commit."""
        return {branch: self.resolve_commit(f"refs/heads/{branch}").hexsha for branch in branches}

    def read_manifest(self) -> Optional[dict]:
        """Read the versions manifest from the mirror, if configured.

        A missing or unreadable manifest is recorded as a warning.
        """
        if not self.config.manifest_ref or not self.config.manifest_path:
            return None

        rev = f"refs/heads/{self.config.manifest_ref}:{self.config.manifest_path}"
        try:
            content = self.repo.git.show(rev)
            return json.loads(content)
        except (git.GitCommandError, json.JSONDecodeError) as e:
            self._warn(
                "manifest_unavailable",
                f"Versions manifest {rev} unavailable: {e}",
                rev=rev,
            )
            return None

    def build(self) -> CommitGraph:
        """Fetch upstream history and assemble the commit graph.

        Returns:
            CommitGraph with commits, refs and every tag target; versions
            are not assigned yet

        Raises:
            UpstreamFetchError: If the origin, a fetch, or the base tag fails
        """
        remote_branches = self.list_remote_branches()
        branches = self.select_branches(remote_branches)
        self.fetch(branches)

        logger.info("collecting_commits", branches=branches, base_tag=self.config.base_tag)
        commits = self.collect_commits(branches)

        tag_targets = self.collect_tags()
        retained_tags = {tag: commit_hash for tag, commit_hash in tag_targets.items() if commit_hash in commits}

        return CommitGraph(
            commits=commits,
            refs=RefTable(tags=retained_tags, branches=self.resolve_branches(branches)),
            base_tag=self.config.base_tag,
            tag_targets=tag_targets,
            warnings=list(self.warnings),
        )
