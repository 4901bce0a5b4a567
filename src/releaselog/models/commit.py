"""Data models for the commit graph and its snapshot document."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

FULL_HASH_LENGTH = 40


class Commit(BaseModel):
    """A single commit retained in the changelog window."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "hash": "0005565fb3ebf11137ab93a312828863d25f3e2c",
                "parents": ["9f2c1e4b7d0a6c3e8b5f1a2d4c6e8f0a1b3c5d7e"],
                "author": "Jane Doe",
                "date": "2025-01-15T10:30:00+00:00",
                "subject": "FIX: Avoid duplicate notifications",
                "body": "The notifier ran twice when a post was edited.",
                "version": "v3.4.0 +12",
            }
        },
    )

    hash: str = Field(..., description="Full commit SHA hash")
    parents: List[str] = Field(default_factory=list, description="Parent commit hashes, in order")
    author: str = Field("", description="Author name")
    date: datetime = Field(..., description="Commit timestamp")
    subject: str = Field("", description="First line of the commit message")
    body: str = Field("", description="Commit message body")
    version: str = Field("", description="Derived version label, empty until assigned")

    @property
    def short_hash(self) -> str:
        return self.hash[:12]

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


class RefTable(BaseModel):
    """Tag and branch references, each mapping a name to a commit hash."""

    tags: Dict[str, str] = Field(default_factory=dict, description="Tag name -> commit hash")
    branches: Dict[str, str] = Field(default_factory=dict, description="Branch name -> commit hash")


class CommitGraph(BaseModel):
    """The commit DAG retained above the base tag, with its refs.

    ``tag_targets`` holds every matching upstream tag, including tags that
    point outside the retained window. Version assignment needs them; the
    snapshot does not.
    """

    commits: Dict[str, Commit] = Field(default_factory=dict)
    refs: RefTable = Field(default_factory=RefTable)
    base_tag: str = Field(..., description="Lower bound of retained history")
    tag_targets: Dict[str, str] = Field(default_factory=dict, exclude=True)
    warnings: List[str] = Field(default_factory=list, exclude=True)

    def with_versions(self, labels: Dict[str, str]) -> "CommitGraph":
        """Return a copy of the graph whose commits carry the given labels."""
        commits = {
            commit_hash: commit.model_copy(update={"version": labels.get(commit_hash, commit.version)})
            for commit_hash, commit in self.commits.items()
        }
        return self.model_copy(update={"commits": commits})


class ProvisionalVersion(BaseModel):
    """The branch an upcoming, not yet tagged version is being built on."""

    branch: str


class Snapshot(BaseModel):
    """The document shared by the ingestion pipeline and the query engine."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    commits: Dict[str, Commit] = Field(default_factory=dict)
    refs: RefTable = Field(default_factory=RefTable)
    base_tag: str = Field("", alias="baseTag")
    provisional_versions: Dict[str, ProvisionalVersion] = Field(
        default_factory=dict, alias="provisionalVersions"
    )

    @classmethod
    def from_graph(
        cls,
        graph: CommitGraph,
        provisional_versions: Optional[Dict[str, ProvisionalVersion]] = None,
    ) -> "Snapshot":
        return cls(
            commits=graph.commits,
            refs=graph.refs,
            base_tag=graph.base_tag,
            provisional_versions=provisional_versions or {},
        )

    def to_document(self) -> dict:
        """Project the snapshot to its JSON-compatible document form."""
        return self.model_dump(mode="json", by_alias=True)
