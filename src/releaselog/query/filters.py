"""Commit classification, ordering, search, and auxiliary-record filters."""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from semver import Version

from releaselog.errors import RefResolution
from releaselog.models import Commit, FeatureAnnouncement, SecurityAdvisory
from releaselog.versioning.semver import (
    contains_version,
    parse_version,
    strip_distance,
    version_in_range,
)


class CommitType(NamedTuple):
    key: str
    label: str
    color: str
    prefix: Optional[str]


COMMIT_TYPES: Tuple[CommitType, ...] = (
    CommitType("FEATURE", "Feature", "#27ae60", "FEATURE"),
    CommitType("FIX", "Fix", "#c0392b", "FIX"),
    CommitType("PERF", "Performance", "#8e44ad", "PERF"),
    CommitType("UX", "UX", "#2980b9", "UX"),
    CommitType("A11Y", "Accessibility", "#16a085", "A11Y"),
    CommitType("SECURITY", "Security", "#d35400", "SECURITY"),
    CommitType("TRANSLATIONS", "Translations", "#e91e63", "I18N"),
    CommitType("DEV", "Dev", "#7f8c8d", "DEV"),
    CommitType("DEPS", "Dependencies", "#7f8c8d", "DEPS"),
    CommitType("OTHER", "Other", "#95a5a6", None),
)


@dataclass(frozen=True)
class CommitFilter:
    """Caller-supplied display filter for a commit list.

    Attributes:
        type: Commit type key, or None / "all" for every type
        search_term: Case-insensitive substring matched against subjects
    """

    type: Optional[str] = None
    search_term: Optional[str] = None


class VersionRange(NamedTuple):
    oldest: Optional[Version]
    newest: Optional[Version]


def get_commit_type(subject: str) -> str:
    """Classify a commit by its subject prefix (``FIX: ...``)."""
    for commit_type in COMMIT_TYPES:
        if commit_type.prefix and subject.startswith(f"{commit_type.prefix}:"):
            return commit_type.key

    # Legacy subjects
    if subject.startswith("Update translations"):
        return "TRANSLATIONS"
    if subject.startswith("Build(deps"):
        return "DEPS"

    return "OTHER"


def sort_commits_by_date(commits: Iterable[Commit], direction: str = "desc") -> List[Commit]:
    """Sort commits by commit date, newest first unless direction is "asc"."""
    return sorted(commits, key=lambda commit: commit.date, reverse=direction == "desc")


def count_commits_by_type(commits: Iterable[Commit]) -> Dict[str, int]:
    """Count commits per type; every known type is present in the result."""
    counts = {commit_type.key: 0 for commit_type in COMMIT_TYPES}
    for commit in commits:
        counts[get_commit_type(commit.subject)] += 1
    return counts


def filter_commits(commits: Iterable[Commit], commit_filter: Optional[CommitFilter] = None) -> List[Commit]:
    """Apply a type and/or search-term filter to commits."""
    filtered = list(commits)
    if commit_filter is None:
        return filtered

    if commit_filter.type and commit_filter.type != "all":
        filtered = [c for c in filtered if get_commit_type(c.subject) == commit_filter.type]

    term = (commit_filter.search_term or "").strip().lower()
    if term:
        filtered = [c for c in filtered if term in c.subject.lower()]

    return filtered


def find_term_spans(text: str, term: Optional[str]) -> List[Tuple[int, int]]:
    """Find every case-insensitive occurrence of term in text.

    Returns:
        Non-overlapping ``(start, end)`` offsets, in order
    """
    needle = (term or "").strip().lower()
    if not needle:
        return []

    haystack = text.lower()
    spans = []
    start = haystack.find(needle)
    while start != -1:
        spans.append((start, start + len(needle)))
        start = haystack.find(needle, start + len(needle))
    return spans


def get_version_range(commits: Sequence[Commit]) -> VersionRange:
    """Version bounds of a commit set, taken from the oldest and newest commits by date."""
    if not commits:
        return VersionRange(None, None)
    ordered = sort_commits_by_date(commits, "desc")
    return VersionRange(
        oldest=parse_version(strip_distance(ordered[-1].version)),
        newest=parse_version(strip_distance(ordered[0].version)),
    )


def filter_features_by_commits(
    features: Sequence[FeatureAnnouncement],
    commits: Sequence[Commit],
    resolve: Callable[[str], RefResolution],
) -> List[FeatureAnnouncement]:
    """Select the feature announcements that belong to a commit range.

    A feature with a version is kept when the version falls in the range's
    half-open version interval. A feature keyed by a ref is kept when the
    ref resolves to a commit in the set.
    """
    if not commits or not features:
        return []

    commit_hashes = {commit.hash for commit in commits}
    oldest, newest = get_version_range(commits)

    selected = []
    for feature in features:
        if not feature.version:
            continue
        if contains_version(feature.version):
            if version_in_range(feature.version, oldest, newest):
                selected.append(feature)
            continue
        resolution = resolve(feature.version)
        if resolution.ok and resolution.hash in commit_hashes:
            selected.append(feature)
    return selected


def filter_advisories_by_commits(
    advisories: Sequence[SecurityAdvisory],
    commits: Sequence[Commit],
) -> List[SecurityAdvisory]:
    """Select advisories with at least one patched version in the range."""
    if not commits or not advisories:
        return []

    oldest, newest = get_version_range(commits)
    return [
        advisory
        for advisory in advisories
        if any(version_in_range(version, oldest, newest) for version in advisory.patched_versions)
    ]
