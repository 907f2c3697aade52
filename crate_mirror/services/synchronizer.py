"""Repository synchronization: converge a git working tree to a release.

Two strategies share one algorithm:

- `replace_tracked_content` empties the working tree except `.git` and copies
  the materialized release in.
- `commit_release` stages everything, commits only if the index changed (or
  unconditionally when asked), and tries to tag the commit. A tag that cannot
  be created is reported as a warning on the outcome, not as an error.

`FreshSynchronizer` builds a new single-commit history every run and force
pushes it. `CloneSynchronizer` fetches the mirror's existing history and
appends to it, pushing nothing when the release is already mirrored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from crate_mirror.core.config import MirrorMode
from crate_mirror.core.mirror_errors import (
    ConfigurationError,
    RepositoryError,
    TagConflictWarning,
)
from crate_mirror.core.result import Err, Ok, Result
from crate_mirror.git.repository import GitError, GitIdentity, Repository
from crate_mirror.platform.files import clear_directory, copy_tree_into, reset_directory

if TYPE_CHECKING:
    from collections.abc import Callable

    from crate_mirror.core.config import MirrorConfig, PushTarget
    from crate_mirror.output.console import ConsoleProtocol
    from crate_mirror.registry.resolver import PackageIdentity

__all__ = [
    "CloneSynchronizer",
    "FreshSynchronizer",
    "RepositorySynchronizer",
    "SyncOutcome",
    "SyncSettings",
    "SyncStatus",
    "commit_message",
    "commit_release",
    "create_synchronizer",
    "replace_tracked_content",
]

METADATA_DIR = ".git"

SyncError = RepositoryError | ConfigurationError


class SyncStatus(str, Enum):
    committed = "committed"
    up_to_date = "up_to_date"


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    """What a synchronization did.

    Attributes:
        status: committed or up_to_date
        identity: The release that was mirrored
        commit_sha: The new commit, None when up to date
        tag: The tag name created, None if no tag was created
        tag_warning: Set when the tag could not be created
    """

    status: SyncStatus
    identity: PackageIdentity
    commit_sha: str | None = None
    tag: str | None = None
    tag_warning: TagConflictWarning | None = None

    @property
    def changed(self) -> bool:
        return self.status == SyncStatus.committed


@dataclass(frozen=True, slots=True)
class SyncSettings:
    """Repository-side settings shared by both strategies."""

    branch: str
    tag_prefix: str
    identity: GitIdentity

    def tag_name(self, version: str) -> str:
        return f"{self.tag_prefix}{version}"

    @classmethod
    def from_config(cls, config: MirrorConfig) -> SyncSettings:
        return cls(
            branch=config.branch,
            tag_prefix=config.tag_prefix,
            identity=GitIdentity(name=config.committer_name, email=config.committer_email),
        )


def commit_message(identity: PackageIdentity) -> str:
    return f"Mirror of {identity.name} version {identity.version} from crates.io"


def _repo_error(e: GitError) -> RepositoryError:
    return RepositoryError(operation=e.command, message=e.message, returncode=e.returncode)


def replace_tracked_content(worktree: Path, source: Path) -> Result[int, RepositoryError]:
    """Make the tracked area of worktree an exact copy of source.

    `.git` in worktree is never touched, and a `.git` entry at any depth of
    source is never copied.

    Returns:
        Ok(number of files copied)
    """
    try:
        clear_directory(worktree, keep=(METADATA_DIR,))
        return Ok(copy_tree_into(source, worktree, exclude=(METADATA_DIR,)))
    except OSError as e:
        return Err(RepositoryError(operation="replace", message=f"cannot replace content: {e}"))


def commit_release(
    repo: Repository,
    identity: PackageIdentity,
    settings: SyncSettings,
    *,
    allow_empty: bool = False,
) -> Result[SyncOutcome, RepositoryError]:
    """Stage all changes and commit + tag them if the index differs from HEAD.

    Args:
        repo: Working copy whose tracked content was already replaced
        identity: Release being mirrored
        settings: Branch, tag prefix and commit identity
        allow_empty: Commit even when nothing changed

    Returns:
        Ok(SyncOutcome) with status up_to_date when nothing was committed
    """
    added = repo.add_all()
    if isinstance(added, Err):
        return added.map_err(_repo_error)

    status = repo.status()
    if isinstance(status, Err):
        return status.map_err(_repo_error)
    if status.value.staged_count == 0 and not allow_empty:
        return Ok(SyncOutcome(status=SyncStatus.up_to_date, identity=identity))

    committed = repo.commit(commit_message(identity), settings.identity, allow_empty=allow_empty)
    if isinstance(committed, Err):
        return committed.map_err(_repo_error)

    tag = settings.tag_name(identity.version)
    tagged = repo.tag(tag)
    if isinstance(tagged, Err):
        return Ok(
            SyncOutcome(
                status=SyncStatus.committed,
                identity=identity,
                commit_sha=committed.value,
                tag_warning=TagConflictWarning(tag=tag, message=tagged.error.message),
            )
        )

    return Ok(
        SyncOutcome(
            status=SyncStatus.committed,
            identity=identity,
            commit_sha=committed.value,
            tag=tag,
        )
    )


class RepositorySynchronizer(Protocol):
    """Converge a mirror repository to a materialized release."""

    def synchronize(
        self,
        identity: PackageIdentity,
        source: Path,
    ) -> Result[SyncOutcome, SyncError]: ...


class FreshSynchronizer:
    """Mode A: new repository every run, force-pushed over the remote.

    Correct regardless of prior state, at the price of rewriting the
    mirror's history on every run.
    """

    def __init__(
        self,
        *,
        worktree: Path,
        settings: SyncSettings,
        push_target: Callable[[], Result[PushTarget, ConfigurationError]],
        console: ConsoleProtocol,
    ) -> None:
        self._worktree = worktree
        self._settings = settings
        self._push_target = push_target
        self._console = console

    def synchronize(
        self,
        identity: PackageIdentity,
        source: Path,
    ) -> Result[SyncOutcome, SyncError]:
        try:
            reset_directory(self._worktree)
        except OSError as e:
            return Err(RepositoryError(operation="init", message=f"cannot reset worktree: {e}"))

        repo = Repository(self._worktree)
        initialized = repo.init(self._settings.branch)
        if isinstance(initialized, Err):
            return initialized.map_err(_repo_error)

        replaced = replace_tracked_content(self._worktree, source)
        if isinstance(replaced, Err):
            return replaced

        committed = commit_release(repo, identity, self._settings, allow_empty=True)
        if isinstance(committed, Err):
            return committed
        outcome = committed.value

        target = self._push_target()
        if isinstance(target, Err):
            return target

        repo = Repository(self._worktree, secrets=_secrets(target.value))
        refspecs = [f"HEAD:refs/heads/{self._settings.branch}"]
        if outcome.tag:
            refspecs.append(f"refs/tags/{outcome.tag}")

        self._console.info(
            f"force pushing {self._settings.branch} to {target.value.public_url}"
        )
        pushed = repo.push(target.value.auth_url, refspecs, force=True)
        if isinstance(pushed, Err):
            return pushed.map_err(_repo_error)

        return Ok(outcome)


class CloneSynchronizer:
    """Mode B: append to the mirror's existing history.

    The remote branch must already exist; an empty or missing remote is a
    fatal error.
    """

    def __init__(
        self,
        *,
        worktree: Path,
        settings: SyncSettings,
        target: PushTarget,
        console: ConsoleProtocol,
    ) -> None:
        self._worktree = worktree
        self._settings = settings
        self._target = target
        self._console = console
        self._repo = Repository(worktree, secrets=_secrets(target))

    def synchronize(
        self,
        identity: PackageIdentity,
        source: Path,
    ) -> Result[SyncOutcome, SyncError]:
        cloned = self._establish_clone()
        if isinstance(cloned, Err):
            return cloned

        replaced = replace_tracked_content(self._worktree, source)
        if isinstance(replaced, Err):
            return replaced

        committed = commit_release(self._repo, identity, self._settings)
        if isinstance(committed, Err):
            return committed
        outcome = committed.value

        if not outcome.changed:
            return Ok(outcome)

        branch = self._settings.branch
        self._console.info(f"pushing {branch} to {self._target.public_url}")
        pushed = self._repo.push(self._target.auth_url, [f"HEAD:refs/heads/{branch}"])
        if isinstance(pushed, Err):
            return pushed.map_err(_repo_error)

        pushed_tags = self._repo.push(self._target.auth_url, [], tags=True)
        if isinstance(pushed_tags, Err):
            return pushed_tags.map_err(_repo_error)

        return Ok(outcome)

    def _establish_clone(self) -> Result[None, RepositoryError]:
        """Check out the remote branch into a fresh working tree.

        Equivalent to `git clone --branch`, except the credentialed URL is
        only used for the fetch and `origin` records the public URL.
        """
        try:
            reset_directory(self._worktree)
        except OSError as e:
            return Err(RepositoryError(operation="clone", message=f"cannot reset worktree: {e}"))

        branch = self._settings.branch
        self._console.info(f"cloning {self._target.public_url} ({branch})")
        steps = (
            lambda: self._repo.init(branch),
            lambda: self._repo.set_origin(self._target.public_url),
            lambda: self._repo.fetch_branch(self._target.auth_url, branch),
            lambda: self._repo.checkout(branch, f"origin/{branch}"),
        )
        for step in steps:
            result = step()
            if isinstance(result, Err):
                e = result.error
                return Err(
                    RepositoryError(
                        operation="clone",
                        message=f"git {e.command}: {e.message}",
                        returncode=e.returncode,
                    )
                )
        return Ok(None)


def _secrets(target: PushTarget) -> tuple[str, ...]:
    return (target.token,) if target.token else ()


def create_synchronizer(
    config: MirrorConfig,
    console: ConsoleProtocol,
) -> Result[RepositorySynchronizer, ConfigurationError]:
    """Select the strategy for config.mode.

    CLONE mode needs the push target up front (the clone itself uses the
    credential); FRESH mode only needs it right before pushing.
    """
    settings = SyncSettings.from_config(config)

    if config.mode == MirrorMode.fresh:
        return Ok(
            FreshSynchronizer(
                worktree=config.repo_dir,
                settings=settings,
                push_target=config.push_target,
                console=console,
            )
        )

    target = config.push_target()
    if isinstance(target, Err):
        return target
    return Ok(
        CloneSynchronizer(
            worktree=config.repo_dir,
            settings=settings,
            target=target.value,
            console=console,
        )
    )
