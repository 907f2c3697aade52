"""Error kinds returned by the mirror stages.

Each kind is a frozen dataclass carried inside `Err(...)`. None of them is
raised. `TagConflictWarning` is the only non-fatal kind; it travels on the
sync outcome instead of in an Err.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

__all__ = [
    "ConfigurationError",
    "ExtractionError",
    "FetchError",
    "MirrorError",
    "RepositoryError",
    "ResolutionError",
    "TagConflictWarning",
]


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """Required settings are missing or invalid.

    Attributes:
        message: Human-readable description
        missing: Names of the missing environment variables, if any
        path: Config file involved, if any
    """

    stage: ClassVar[str] = "config"

    message: str
    missing: tuple[str, ...] = ()
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ResolutionError:
    """The registry could not tell us the latest version."""

    stage: ClassVar[str] = "resolve"

    package: str
    message: str
    status: int = 0


@dataclass(frozen=True, slots=True)
class FetchError:
    """The release archive could not be downloaded."""

    stage: ClassVar[str] = "fetch"

    url: str
    message: str
    status: int = 0


@dataclass(frozen=True, slots=True)
class ExtractionError:
    """The archive is corrupt or could not be written out."""

    stage: ClassVar[str] = "extract"

    archive: Path
    message: str


@dataclass(frozen=True, slots=True)
class RepositoryError:
    """A git operation against the working copy or the remote failed.

    Attributes:
        operation: Short name of the failed step ("fetch", "commit", "push", ...)
        message: git's diagnostic, with credentials redacted
        returncode: Exit code of the git process (-1 if it never ran)
    """

    stage: ClassVar[str] = "repository"

    operation: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class TagConflictWarning:
    """The release tag could not be created; the run continues."""

    stage: ClassVar[str] = "repository"

    tag: str
    message: str


MirrorError = (
    ConfigurationError | ResolutionError | FetchError | ExtractionError | RepositoryError
)
