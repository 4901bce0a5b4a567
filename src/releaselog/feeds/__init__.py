"""Fetchers for the auxiliary feeds shown next to the changelog."""

from releaselog.feeds.advisories import fetch_security_advisories, transform_advisory
from releaselog.feeds.features import fetch_new_features

__all__ = ["fetch_new_features", "fetch_security_advisories", "transform_advisory"]
