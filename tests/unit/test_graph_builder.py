"""Unit tests for commit graph assembly against real repositories."""

import json
import tempfile
from pathlib import Path

import git
import pytest

from releaselog.errors import UpstreamFetchError
from releaselog.extraction import CommitGraphBuilder, commit_from_git
from releaselog.models import IngestionConfig
from releaselog.versioning import VersionAssigner

MANIFEST = {
    "1.0": {"released": True, "supported": True},
    "1.2": {"released": False, "supported": True},
}


def _commit(repo, repo_path, filename, message):
    (repo_path / filename).write_text(f"{message}\n")
    repo.index.add([filename])
    return repo.index.commit(message)


@pytest.fixture
def origin():
    """Create an upstream repository.

    History::

        A(v0.9.0) - B(v1.0.0) - C - D(v1.1.0) - E   main, latest
                                 \\
                                  F               release/1.0
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir) / "origin"
        repo_path.mkdir()
        repo = git.Repo.init(repo_path)

        repo.config_writer().set_value("user", "name", "Test User").release()
        repo.config_writer().set_value("user", "email", "test@example.com").release()

        commits = {}
        commits["A"] = _commit(repo, repo_path, "README.md", "DEV: Initial commit")
        repo.git.branch("-M", "main")
        repo.create_tag("v0.9.0", ref=commits["A"])

        commits["B"] = _commit(repo, repo_path, "app.py", "FEATURE: First release\n\nWith a body line.")
        repo.create_tag("v1.0.0", ref=commits["B"], message="Release 1.0.0")

        commits["C"] = _commit(repo, repo_path, "app.py", "FIX: Broken thing")
        commits["D"] = _commit(repo, repo_path, "app.py", "FEATURE: Second release")
        repo.create_tag("v1.1.0", ref=commits["D"])
        repo.create_tag("other-marker", ref=commits["D"])

        (repo_path / "versions.json").write_text(json.dumps(MANIFEST))
        repo.index.add(["versions.json"])
        commits["E"] = _commit(repo, repo_path, "app.py", "DEV: Tip of main")

        repo.create_head("latest", commits["E"])
        repo.create_head("feature/unrelated", commits["C"])

        release = repo.create_head("release/1.0", commits["C"])
        release.checkout()
        commits["F"] = _commit(repo, repo_path, "app.py", "FIX: Backported fix")
        repo.heads.main.checkout()

        yield {
            "path": repo_path,
            "mirror": Path(tmpdir) / "mirror",
            "hashes": {name: c.hexsha for name, c in commits.items()},
        }


@pytest.fixture
def config(origin):
    return IngestionConfig(
        origin=str(origin["path"]),
        mirror_dir=origin["mirror"],
        base_tag="v1.0.0",
    )


def test_commit_from_git(origin):
    """Test subject and body are split from the message."""
    repo = git.Repo(origin["path"])
    commit = commit_from_git(repo.commit(origin["hashes"]["B"]))

    assert commit.hash == origin["hashes"]["B"]
    assert commit.subject == "FEATURE: First release"
    assert commit.body == "With a body line."
    assert commit.author == "Test User"
    assert commit.parents == [origin["hashes"]["A"]]
    assert commit.version == ""


def test_select_branches(config, origin):
    """Test fixed heads come first, then matching release branches."""
    builder = CommitGraphBuilder(config)
    remote = builder.list_remote_branches()

    assert remote == {"main", "latest", "feature/unrelated", "release/1.0"}
    assert builder.select_branches(remote) == ["main", "latest", "release/1.0"]
    assert builder.warnings == ["Branch stable not found upstream, skipping"]


def test_build_graph(config, origin):
    """Test the graph spans every branch down to the base tag."""
    h = origin["hashes"]
    graph = CommitGraphBuilder(config).build()

    assert set(graph.commits) == {h["B"], h["C"], h["D"], h["E"], h["F"]}
    assert graph.base_tag == "v1.0.0"
    assert graph.refs.tags == {"v1.0.0": h["B"], "v1.1.0": h["D"]}
    assert graph.refs.branches == {"main": h["E"], "latest": h["E"], "release/1.0": h["F"]}
    assert graph.tag_targets["v0.9.0"] == h["A"]
    assert "other-marker" not in graph.tag_targets
    assert any("stable" in warning for warning in graph.warnings)


def test_build_graph_is_closed(config):
    """Test every retained parent is either retained or the base's parent."""
    graph = CommitGraphBuilder(config).build()
    base_hash = graph.refs.tags["v1.0.0"]

    for commit in graph.commits.values():
        if commit.hash == base_hash:
            continue
        assert all(parent in graph.commits for parent in commit.parents)


def test_build_graph_labels(config, origin):
    """Test the built graph can be labelled end to end."""
    h = origin["hashes"]
    graph = VersionAssigner(CommitGraphBuilder(config).build()).assign()

    assert graph.commits[h["B"]].version == "v1.0.0"
    assert graph.commits[h["C"]].version == "v1.0.0 +1"
    assert graph.commits[h["D"]].version == "v1.1.0"
    assert graph.commits[h["E"]].version == "v1.1.0 +1"
    assert graph.commits[h["F"]].version == "v1.0.0 +2"


def test_rebuild_reuses_mirror(config, origin):
    """Test a second run against an existing mirror picks up new commits."""
    CommitGraphBuilder(config).build()

    repo = git.Repo(origin["path"])
    new_commit = _commit(repo, origin["path"], "app.py", "DEV: Later work")

    graph = CommitGraphBuilder(config).build()

    assert new_commit.hexsha in graph.commits
    assert graph.refs.branches["main"] == new_commit.hexsha


def test_read_manifest(config):
    """Test the versions manifest is read from the configured branch."""
    builder = CommitGraphBuilder(config)
    builder.build()

    assert builder.read_manifest() == MANIFEST


def test_read_manifest_missing_is_warning(origin):
    """Test a missing manifest is reported but not fatal."""
    config = IngestionConfig(
        origin=str(origin["path"]),
        mirror_dir=origin["mirror"],
        base_tag="v1.0.0",
        manifest_ref="release/1.0",
    )
    builder = CommitGraphBuilder(config)
    builder.build()

    assert builder.read_manifest() is None
    assert any("versions.json" in warning for warning in builder.warnings)


def test_unreachable_origin(tmp_path):
    """Test an unreachable origin aborts the build."""
    config = IngestionConfig(
        origin=str(tmp_path / "does-not-exist"),
        mirror_dir=tmp_path / "mirror",
        base_tag="v1.0.0",
    )

    with pytest.raises(UpstreamFetchError, match="Could not reach origin"):
        CommitGraphBuilder(config).build()


def test_missing_base_tag(origin):
    """Test a base tag absent upstream aborts the build."""
    config = IngestionConfig(
        origin=str(origin["path"]),
        mirror_dir=origin["mirror"],
        base_tag="v9.9.9",
    )

    with pytest.raises(UpstreamFetchError, match="v9.9.9"):
        CommitGraphBuilder(config).build()
