"""Version parsing, ordering, and assignment."""

from releaselog.versioning.assigner import (
    DescribeVersionAssigner,
    NearestTag,
    VersionAssigner,
    build_commit_to_tag,
)
from releaselog.versioning.provisional import compute_provisional_versions
from releaselog.versioning.semver import (
    is_release_tag,
    normalize_version,
    parse_version,
    sort_tags_descending,
    strip_distance,
    version_in_range,
)

__all__ = [
    "DescribeVersionAssigner",
    "NearestTag",
    "VersionAssigner",
    "build_commit_to_tag",
    "compute_provisional_versions",
    "is_release_tag",
    "normalize_version",
    "parse_version",
    "sort_tags_descending",
    "strip_distance",
    "version_in_range",
]
