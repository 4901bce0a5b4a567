"""releaselog - changelog snapshots for multi-branch release histories."""

__version__ = "0.1.0"
