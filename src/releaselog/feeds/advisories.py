"""Security-advisory feed from the GitHub REST API."""

from typing import Any, Dict, List, Optional

import requests
import structlog

from releaselog.errors import UpstreamFetchError
from releaselog.models import SecurityAdvisory

logger = structlog.get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


def transform_advisory(advisory: Dict[str, Any]) -> SecurityAdvisory:
    """Reduce a raw GitHub advisory to the fields the changelog uses.

    Patched versions are gathered from every vulnerability, split on commas,
    trimmed, and deduplicated in order of first appearance.
    """
    patched_versions = []
    for vulnerability in advisory.get("vulnerabilities") or []:
        for version in (vulnerability.get("patched_versions") or "").split(","):
            version = version.strip()
            if version and version not in patched_versions:
                patched_versions.append(version)

    return SecurityAdvisory(
        ghsa_id=advisory["ghsa_id"],
        cve_id=advisory.get("cve_id"),
        summary=advisory.get("summary") or "",
        severity=advisory.get("severity") or "unknown",
        published_at=advisory.get("published_at"),
        html_url=advisory.get("html_url"),
        patched_versions=patched_versions,
    )


def fetch_security_advisories(
    owner: str,
    repo: str,
    session: Optional[requests.Session] = None,
    token: Optional[str] = None,
    timeout: float = 30.0,
    base_url: str = GITHUB_API_URL,
) -> List[SecurityAdvisory]:
    """Download every published advisory for a repository.

    Pages are fetched one after another, following the ``next`` link of
    each response until there is none.

    Raises:
        UpstreamFetchError: On any network error or non-2xx response
    """
    session = session or requests.Session()
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    url: Optional[str] = f"{base_url}/repos/{owner}/{repo}/security-advisories?state=published&per_page=100"
    raw_advisories: List[Dict[str, Any]] = []
    page = 1

    while url:
        logger.info("advisories_page_fetch", page=page)
        try:
            response = session.get(url, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            raise UpstreamFetchError(f"Failed to fetch advisories: {e}") from e

        if not response.ok:
            raise UpstreamFetchError(f"Failed to fetch advisories: {response.status_code} {response.reason}")

        try:
            advisories = response.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Advisories page {page} is not valid JSON: {e}") from e

        if not isinstance(advisories, list):
            raise UpstreamFetchError(f"Advisories page {page} is not a list")

        raw_advisories.extend(advisories)
        logger.info("advisories_page_fetched", page=page, count=len(advisories), total=len(raw_advisories))

        url = response.links.get("next", {}).get("url")
        page += 1

    transformed = [transform_advisory(advisory) for advisory in raw_advisories]
    logger.info(
        "advisories_fetch_completed",
        total=len(transformed),
        with_patched_versions=sum(1 for a in transformed if a.patched_versions),
    )
    return transformed
