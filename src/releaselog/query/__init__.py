"""Query layer over a loaded changelog snapshot."""

from releaselog.query.engine import Changelog, ChangelogQueryEngine, RefOption
from releaselog.query.filters import (
    COMMIT_TYPES,
    CommitFilter,
    count_commits_by_type,
    filter_advisories_by_commits,
    filter_commits,
    filter_features_by_commits,
    find_term_spans,
    get_commit_type,
    get_version_range,
    sort_commits_by_date,
)

__all__ = [
    "Changelog",
    "ChangelogQueryEngine",
    "RefOption",
    "COMMIT_TYPES",
    "CommitFilter",
    "count_commits_by_type",
    "filter_advisories_by_commits",
    "filter_commits",
    "filter_features_by_commits",
    "find_term_spans",
    "get_commit_type",
    "get_version_range",
    "sort_commits_by_date",
]
