"""Error presentation utilities.

Centralized formatting and exit code mapping for mirror errors and outcomes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from crate_mirror.core.errors import ErrorCode
from crate_mirror.core.mirror_errors import (
    ConfigurationError,
    ExtractionError,
    FetchError,
    MirrorError,
    RepositoryError,
    ResolutionError,
)
from crate_mirror.output.console import Style

if TYPE_CHECKING:
    from crate_mirror.output.console import ConsoleProtocol
    from crate_mirror.services.synchronizer import SyncOutcome

__all__ = ["mirror_error_exit_code", "print_mirror_error", "print_outcome"]


def print_mirror_error(error: MirrorError, console: ConsoleProtocol) -> None:
    """Print a fatal error, tagged with the stage that failed."""
    console.error(f"[{error.stage}] {error.message}")
    match error:
        case ConfigurationError(missing=missing) if missing:
            console.print(f"hint: export {' '.join(f'{m}=...' for m in missing)}", Style.DIM)
        case ConfigurationError(path=path) if path is not None:
            console.print(f"hint: check {path}", Style.DIM)
        case ResolutionError(package=package, status=404):
            console.print(f"hint: is '{package}' published on crates.io?", Style.DIM)
        case FetchError(url=url):
            console.print(f"url: {url}", Style.DIM)
        case ExtractionError(archive=archive):
            console.print(f"archive: {archive}", Style.DIM)
        case RepositoryError(operation="clone"):
            console.print(
                "hint: the mirror repository and its branch must exist before the first run",
                Style.DIM,
            )
        case _:
            pass


def mirror_error_exit_code(error: MirrorError) -> int:
    """Get exit code for a mirror error."""
    match error:
        case ConfigurationError():
            return int(ErrorCode.USER_ERROR)
        case ResolutionError() | FetchError():
            return int(ErrorCode.NETWORK_ERROR)
        case ExtractionError():
            return int(ErrorCode.IO_ERROR)
        case RepositoryError(operation="prepare"):
            return int(ErrorCode.IO_ERROR)
        case RepositoryError(returncode=-1):
            # git could not be started at all
            return int(ErrorCode.ENV_ERROR)
        case RepositoryError():
            return int(ErrorCode.GIT_ERROR)


def print_outcome(outcome: SyncOutcome, console: ConsoleProtocol) -> None:
    identity = outcome.identity
    if not outcome.changed:
        console.success(f"{identity.name} {identity.version} is up to date, nothing to commit")
        return

    sha = (outcome.commit_sha or "")[:12]
    tag = f", tagged {outcome.tag}" if outcome.tag else ""
    console.success(f"mirrored {identity.name} {identity.version} as {sha}{tag}")
