"""Concurrency helpers for ingestion."""

from releaselog.concurrency.pool import BoundedWorkerPool

__all__ = ["BoundedWorkerPool"]
