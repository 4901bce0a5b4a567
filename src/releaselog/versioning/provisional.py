"""Provisional next versions for release lines that are still moving."""

import re
from typing import Dict, Mapping

import structlog

from releaselog.models import ProvisionalVersion

logger = structlog.get_logger(__name__)

PATCH_TAG_RE = re.compile(r"^v(\d+\.\d+)\.(\d+)$")


def compute_provisional_versions(
    tags: Mapping[str, str],
    branches: Mapping[str, str],
    manifest: Mapping[str, Mapping[str, bool]],
    development_branch: str = "latest",
) -> Dict[str, ProvisionalVersion]:
    """Work out which version each supported release line will ship next.

    Args:
        tags: Tag name -> commit hash for the retained window
        branches: Branch name -> commit hash
        manifest: Minor version -> ``{"released": bool, "supported": bool}``
        development_branch: Branch that carries the unreleased minor

    Returns:
        Next version (``vX.Y.Z``) -> the branch it is being built on
    """
    provisional = {}

    for minor, data in manifest.items():
        released = bool(data.get("released"))
        supported = bool(data.get("supported"))

        # End of life
        if released and not supported:
            continue

        if not released and supported:
            branch = development_branch
        else:
            branch = f"release/{minor}"

        if branch not in branches:
            logger.info("provisional_version_skipped", minor=minor, branch=branch)
            continue

        patches = [
            int(match.group(2))
            for match in (PATCH_TAG_RE.match(tag) for tag in tags)
            if match and match.group(1) == minor
        ]
        next_patch = max(patches) + 1 if patches else 0
        next_version = f"v{minor}.{next_patch}"

        provisional[next_version] = ProvisionalVersion(branch=branch)
        logger.info("provisional_version_computed", version=next_version, branch=branch)

    return provisional
