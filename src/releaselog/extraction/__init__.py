"""Commit graph extraction from upstream git history."""

from releaselog.extraction.graph_builder import CommitGraphBuilder, commit_from_git

__all__ = ["CommitGraphBuilder", "commit_from_git"]
