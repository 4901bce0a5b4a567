"""Shared fixtures for building commit graphs in memory."""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from releaselog.models import Commit, CommitGraph, RefTable, Snapshot

EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


def fake_hash(name: str) -> str:
    """Deterministic 40-char hex hash for a commit name."""
    return hashlib.sha1(name.encode()).hexdigest()


class GraphFactory:
    """Builds small commit graphs by commit name."""

    def __init__(self) -> None:
        self.commits: Dict[str, Commit] = {}
        self.hashes: Dict[str, str] = {}
        self.tags: Dict[str, str] = {}
        self.branches: Dict[str, str] = {}

    def commit(
        self,
        name: str,
        parents: Optional[List[str]] = None,
        subject: Optional[str] = None,
        version: str = "",
        commit_hash: Optional[str] = None,
    ) -> str:
        commit_hash = commit_hash or fake_hash(name)
        self.hashes[name] = commit_hash
        self.commits[commit_hash] = Commit(
            hash=commit_hash,
            parents=[self.hashes.get(p, p) for p in parents or []],
            author="Test User",
            date=EPOCH + timedelta(hours=len(self.commits)),
            subject=subject or f"DEV: commit {name}",
            body="",
            version=version,
        )
        return commit_hash

    def tag(self, tag: str, name: str) -> None:
        self.tags[tag] = self.hashes[name]

    def branch(self, branch: str, name: str) -> None:
        self.branches[branch] = self.hashes[name]

    def graph(self, base_tag: str = "v1.0.0") -> CommitGraph:
        return CommitGraph(
            commits=dict(self.commits),
            refs=RefTable(tags=dict(self.tags), branches=dict(self.branches)),
            base_tag=base_tag,
            tag_targets=dict(self.tags),
        )

    def snapshot(self, base_tag: str = "v1.0.0") -> Snapshot:
        return Snapshot.from_graph(self.graph(base_tag))


@pytest.fixture
def factory():
    return GraphFactory()


@pytest.fixture
def linear_factory():
    """A(root, v1.0.0) -> B -> C(v1.1.0) -> D(main)."""
    f = GraphFactory()
    f.commit("A")
    f.commit("B", ["A"])
    f.commit("C", ["B"])
    f.commit("D", ["C"])
    f.tag("v1.0.0", "A")
    f.tag("v1.1.0", "C")
    f.branch("main", "D")
    return f
