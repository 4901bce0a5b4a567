"""Feature-announcement feed."""

from typing import Any, Dict, List, Optional

import requests
import structlog

from releaselog.errors import UpstreamFetchError

logger = structlog.get_logger(__name__)


def fetch_new_features(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
) -> List[Dict[str, Any]]:
    """Download the feature-announcement list.

    The records are returned as published; the query engine validates them
    when the document is loaded.

    Raises:
        UpstreamFetchError: On any network error or non-2xx response
    """
    session = session or requests.Session()
    logger.info("features_fetch_started", url=url)

    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamFetchError(f"Failed to fetch new features: {e}") from e

    if not response.ok:
        raise UpstreamFetchError(f"Failed to fetch new features: {response.status_code} {response.reason}")

    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamFetchError(f"New features feed is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise UpstreamFetchError("New features feed is not a list")

    logger.info("features_fetch_completed", records=len(data))
    return data
