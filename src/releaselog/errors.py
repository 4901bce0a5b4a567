"""Error types and ref-resolution results."""

from dataclasses import dataclass, field
from typing import Tuple, Union

AMBIGUOUS_DISPLAY_LIMIT = 5
SHORT_HASH_LENGTH = 12


class ReleaseLogError(Exception):
    """Base class for all releaselog errors."""


class IngestionError(ReleaseLogError):
    """Raised when an ingestion run must abort."""


class UpstreamFetchError(IngestionError):
    """Raised when raw history or an auxiliary feed cannot be fetched."""


class GraphIntegrityError(IngestionError):
    """Raised when a retained commit has no tagged ancestor."""

    def __init__(self, commit_hash: str) -> None:
        self.commit_hash = commit_hash
        super().__init__(f"No tag found for commit {commit_hash}")


@dataclass(frozen=True)
class Resolved:
    """A ref that resolved to exactly one commit."""

    ref: str
    hash: str
    kind: str = field(default="resolved", init=False)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class UnknownRef:
    """A ref that matches no tag, branch, or commit."""

    ref: str
    kind: str = field(default="unknown", init=False)

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return f"Unknown ref '{self.ref}'. No matching tag, branch, or commit found."


@dataclass(frozen=True)
class AmbiguousRef:
    """A hash prefix that matches more than one commit."""

    ref: str
    matches: Tuple[str, ...]
    kind: str = field(default="ambiguous", init=False)

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        shown = [h[:SHORT_HASH_LENGTH] for h in self.matches[:AMBIGUOUS_DISPLAY_LIMIT]]
        remaining = len(self.matches) - AMBIGUOUS_DISPLAY_LIMIT
        match_list = ", ".join(shown)
        if remaining > 0:
            match_list = f"{match_list} and {remaining} more"
        return (
            f"Ambiguous ref '{self.ref}' matches {len(self.matches)} commits: "
            f"{match_list}. Use more characters to be specific."
        )


RefFailure = Union[UnknownRef, AmbiguousRef]
RefResolution = Union[Resolved, UnknownRef, AmbiguousRef]


class RefResolutionError(ReleaseLogError, ValueError):
    """Raised when a ref has to resolve but does not.

    Carries the failure variant so callers can still branch on
    ``error.failure.kind`` instead of the exception type.
    """

    def __init__(self, failure: RefFailure) -> None:
        self.failure = failure
        super().__init__(failure.message)

    @property
    def ref(self) -> str:
        return self.failure.ref
