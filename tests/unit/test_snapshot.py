"""Unit tests for snapshot persistence."""

import json
import tempfile
from pathlib import Path

import pytest

from releaselog.models import ProvisionalVersion, Snapshot
from releaselog.storage import (
    SnapshotWriter,
    load_advisories,
    load_features,
    load_snapshot,
    write_json_document,
)
from releaselog.versioning import VersionAssigner


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def test_snapshot_document_shape(linear_factory, tmp_dir):
    """Test the written document uses the published field names."""
    graph = VersionAssigner(linear_factory.graph()).assign()
    path = SnapshotWriter(tmp_dir / "data" / "commits.json").write(
        graph, {"v1.2.0": ProvisionalVersion(branch="main")}
    )

    data = json.loads(path.read_text())

    assert set(data) == {"commits", "refs", "baseTag", "provisionalVersions"}
    assert data["baseTag"] == "v1.0.0"
    assert data["refs"]["tags"] == {"v1.0.0": linear_factory.hashes["A"], "v1.1.0": linear_factory.hashes["C"]}
    assert data["refs"]["branches"] == {"main": linear_factory.hashes["D"]}
    assert data["provisionalVersions"] == {"v1.2.0": {"branch": "main"}}

    commit = data["commits"][linear_factory.hashes["B"]]
    assert set(commit) == {"hash", "parents", "author", "date", "subject", "body", "version"}
    assert commit["version"] == "v1.0.0 +1"
    assert commit["parents"] == [linear_factory.hashes["A"]]
    assert commit["date"].startswith("2025-01-01T01:00:00")


def test_snapshot_excludes_ingestion_only_fields(linear_factory, tmp_dir):
    """Test tag targets and warnings stay out of the document."""
    graph = linear_factory.graph()
    graph.tag_targets["v0.1.0"] = "outside"
    graph.warnings.append("something")

    path = SnapshotWriter(tmp_dir / "commits.json").write(graph)
    data = json.loads(path.read_text())

    assert "tag_targets" not in data
    assert "warnings" not in data
    assert "v0.1.0" not in data["refs"]["tags"]


def test_load_snapshot(linear_factory, tmp_dir):
    """Test a written snapshot loads back with its commits and refs."""
    graph = VersionAssigner(linear_factory.graph()).assign()
    path = SnapshotWriter(tmp_dir / "commits.json").write(graph)

    snapshot = load_snapshot(path)

    assert snapshot.base_tag == "v1.0.0"
    assert snapshot.commits == graph.commits
    assert snapshot.refs == graph.refs


def test_load_snapshot_ignores_unknown_fields(tmp_dir):
    """Test additive fields from newer writers are accepted."""
    path = write_json_document(
        tmp_dir / "commits.json",
        {"commits": {}, "refs": {"tags": {}, "branches": {}}, "baseTag": "v1.0.0", "generatedBy": "future"},
    )
    assert load_snapshot(path) == Snapshot(base_tag="v1.0.0")


def test_load_snapshot_invalid(tmp_dir):
    """Test malformed documents raise ValueError."""
    bad_json = tmp_dir / "bad.json"
    bad_json.write_text("{not json")
    with pytest.raises(ValueError):
        load_snapshot(bad_json)

    bad_shape = write_json_document(tmp_dir / "shape.json", {"commits": {"x": {"hash": "x"}}})
    with pytest.raises(ValueError):
        load_snapshot(bad_shape)


def test_load_snapshot_missing(tmp_dir):
    """Test a missing snapshot raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_snapshot(tmp_dir / "missing.json")


def test_write_json_document_is_atomic(tmp_dir):
    """Test a failed write leaves the previous document and no temp files."""
    path = write_json_document(tmp_dir / "doc.json", {"a": 1})

    with pytest.raises(TypeError):
        write_json_document(path, {1j: "complex keys are not serialisable"})

    assert json.loads(path.read_text()) == {"a": 1}
    assert [p.name for p in tmp_dir.iterdir()] == ["doc.json"]


def test_load_auxiliary_documents(tmp_dir):
    """Test feature and advisory documents load, and missing ones are empty."""
    features_path = write_json_document(
        tmp_dir / "new-features.json",
        [{"title": "Chat", "description": "Now faster", "discourse_version": "3.5.0"}],
    )
    advisories_path = write_json_document(
        tmp_dir / "security-advisories.json",
        [{"ghsa_id": "GHSA-1", "severity": "high", "summary": "s", "patched_versions": ["3.4.1"]}],
    )

    features = load_features(features_path)
    advisories = load_advisories(advisories_path)

    assert features[0].version == "3.5.0"
    assert advisories[0].patched_versions == ["3.4.1"]
    assert load_features(tmp_dir / "nope.json") == []
    assert load_advisories(tmp_dir / "nope.json") == []
