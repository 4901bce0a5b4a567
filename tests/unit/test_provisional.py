"""Unit tests for provisional version computation."""

from releaselog.models import ProvisionalVersion
from releaselog.versioning import compute_provisional_versions

TAGS = {
    "v3.4.0": "a",
    "v3.4.1": "b",
    "v3.4.10": "c",
    "v3.5.0.beta1": "d",
    "v3.5.0": "e",
}

BRANCHES = {
    "main": "x",
    "latest": "y",
    "release/3.4": "z",
    "release/3.5": "w",
}


def test_supported_release_line_gets_next_patch():
    """Test the next patch follows the highest numeric patch tag."""
    manifest = {"3.4": {"released": True, "supported": True}}

    result = compute_provisional_versions(TAGS, BRANCHES, manifest)

    assert result == {"v3.4.11": ProvisionalVersion(branch="release/3.4")}


def test_release_line_without_patch_tags_starts_at_zero():
    """Test a minor with no final tags gets its .0 release."""
    manifest = {"3.6": {"released": True, "supported": True}}
    branches = dict(BRANCHES, **{"release/3.6": "v"})

    result = compute_provisional_versions(TAGS, branches, manifest)

    assert result == {"v3.6.0": ProvisionalVersion(branch="release/3.6")}


def test_unreleased_minor_uses_development_branch():
    """Test an in-development minor is attributed to the development branch."""
    manifest = {"3.6": {"released": False, "supported": True}}

    assert compute_provisional_versions(TAGS, BRANCHES, manifest) == {
        "v3.6.0": ProvisionalVersion(branch="latest")
    }
    assert compute_provisional_versions(TAGS, BRANCHES, manifest, development_branch="main") == {
        "v3.6.0": ProvisionalVersion(branch="main")
    }


def test_end_of_life_minor_is_skipped():
    """Test released but unsupported minors get nothing."""
    manifest = {"3.4": {"released": True, "supported": False}}

    assert compute_provisional_versions(TAGS, BRANCHES, manifest) == {}


def test_missing_branch_is_skipped():
    """Test minors whose branch is not present are skipped."""
    manifest = {
        "3.3": {"released": True, "supported": True},
        "3.5": {"released": True, "supported": True},
    }

    result = compute_provisional_versions(TAGS, BRANCHES, manifest)

    assert result == {"v3.5.1": ProvisionalVersion(branch="release/3.5")}


def test_pre_release_tags_do_not_count_as_patches():
    """Test beta tags are ignored when finding the latest patch."""
    tags = {"v3.5.0.beta1": "a", "v3.5.0.beta2": "b"}
    manifest = {"3.5": {"released": True, "supported": True}}

    result = compute_provisional_versions(tags, BRANCHES, manifest)

    assert result == {"v3.5.0": ProvisionalVersion(branch="release/3.5")}
