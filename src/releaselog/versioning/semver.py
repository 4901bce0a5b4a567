"""Version parsing and ordering for release tags and version labels.

Tags use semantic versions with a ``v`` prefix and are ordered by semantic
versioning precedence, so ``v3.5.0-1`` sorts below ``v3.5.0`` and
``v2025.12.0-latest`` is a valid pre-release. Older releases carry a
``.betaN`` suffix (``v3.5.0.beta1``), which is normalised to ``-beta.N`` for
comparison only; display strings are never rewritten.
"""

import re
from typing import Iterable, List, Optional

from semver import Version

RELEASE_TAG_RE = re.compile(r"^v\d+\.\d+\.\d+$")
SEMVER_CORE_RE = re.compile(r"\d+\.\d+\.\d+")
BETA_SUFFIX_RE = re.compile(r"\.beta(\d+)$")
DISTANCE_SUFFIX_RE = re.compile(r"\s*\+\d+$")


def is_release_tag(tag: str) -> bool:
    """Check whether a tag has the strict ``vMAJOR.MINOR.PATCH`` shape."""
    return bool(RELEASE_TAG_RE.match(tag))


def normalize_version(version: str) -> str:
    """Rewrite the legacy beta notation: ``v3.5.0.beta1`` -> ``v3.5.0-beta.1``."""
    return BETA_SUFFIX_RE.sub(r"-beta.\1", version)


def strip_distance(label: str) -> str:
    """Drop the `` +N`` distance suffix from a version label."""
    return DISTANCE_SUFFIX_RE.sub("", label)


def parse_version(version: Optional[str]) -> Optional[Version]:
    """Parse a tag or version string into a comparable semantic version.

    A leading ``v`` is dropped and the legacy beta notation normalised.
    Returns None for anything that is not ``MAJOR.MINOR.PATCH`` with
    optional pre-release and build parts.
    """
    if not version:
        return None
    candidate = normalize_version(version.strip())
    if candidate.startswith("v"):
        candidate = candidate[1:]
    try:
        return Version.parse(candidate)
    except ValueError:
        return None


def contains_version(value: str) -> bool:
    """Check whether a string embeds a ``MAJOR.MINOR.PATCH`` version."""
    return bool(SEMVER_CORE_RE.search(value))


def sort_tags_descending(tags: Iterable[str]) -> List[str]:
    """Order tags newest first.

    Tags that parse as versions come first, in descending version order.
    The rest follow in reverse lexicographic order.
    """
    valid = []
    invalid = []
    for tag in tags:
        parsed = parse_version(tag)
        if parsed is None:
            invalid.append(tag)
        else:
            valid.append((parsed, tag))

    # Equal precedence (v1.0.0 vs 1.0.0) falls back to the name
    valid.sort(key=lambda item: (item[0], item[1]), reverse=True)
    invalid.sort(reverse=True)
    return [tag for _, tag in valid] + invalid


def version_in_range(version: str, oldest: Optional[Version], newest: Optional[Version]) -> bool:
    """Check ``oldest < version <= newest``.

    The lower bound is the previous baseline and is excluded; the upper bound
    is the release under review and is included. Any unparseable side makes
    the check fail.
    """
    parsed = parse_version(version)
    if parsed is None or oldest is None or newest is None:
        return False
    return oldest < parsed <= newest
