"""Git repository abstraction.

This module provides the Repository class for the git operations a mirror
run needs. All operations return Result types.

Remote URLs are always passed as command arguments, never stored as a
remote, so a URL carrying a token does not end up in `.git/config`. Any
secret handed to the Repository is redacted from error messages.

Usage:
    repo = Repository(Path("work/repo"), secrets=(token,))

    match repo.status():
        case Ok(status):
            print(f"{status.staged_count} staged")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from crate_mirror.core.result import Err, Ok, Result
from crate_mirror.platform.process import ProcessError
from crate_mirror.platform.process import run as run_process

__all__ = [
    "GitError",
    "GitIdentity",
    "GitStatus",
    "Repository",
    "StatusEntry",
]

# Never block a batch run on an interactive credential prompt
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message (secrets redacted)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class GitIdentity:
    """Author and committer used for mirror commits."""

    name: str
    email: str


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One `XY path` line of porcelain status."""

    xy: str
    path: str

    @property
    def is_staged(self) -> bool:
        """True when the index side (X) records a change."""
        return self.xy[0] not in " ?"


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Branch line plus entries of `git status --porcelain=v1 -b`."""

    branch: str
    entries: tuple[StatusEntry, ...] = ()

    @property
    def staged(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_staged]

    @property
    def staged_count(self) -> int:
        return len(self.staged)


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the working tree root
    """

    def __init__(self, path: Path, *, secrets: tuple[str, ...] = ()) -> None:
        """Initialize repository.

        Args:
            path: Path to the working tree root (need not exist yet for init).
                Resolved to an absolute path.
            secrets: Strings to redact from error messages
        """
        self.path = path.resolve()
        self._secrets = secrets

    def init(self, branch: str) -> Result[None, GitError]:
        """Create an empty repository whose unborn branch is `branch`."""
        self.path.mkdir(parents=True, exist_ok=True)
        return self._void("init", ["init", "--quiet", "--initial-branch", branch])

    def set_origin(self, url: str) -> Result[None, GitError]:
        """Record a credential-free `origin` remote."""
        return self._void("remote", ["remote", "add", "origin", url])

    def fetch_branch(self, url: str, branch: str) -> Result[None, GitError]:
        """Fetch `branch` into `origin/<branch>`, plus all tags."""
        refspec = f"+refs/heads/{branch}:refs/remotes/origin/{branch}"
        args = ["fetch", "--quiet", "--no-write-fetch-head", "--tags", url, refspec]
        # The default reflog message repeats the command line, URL included
        return self._void("fetch", args, env={"GIT_REFLOG_ACTION": "fetch"})

    def checkout(self, branch: str, start_point: str) -> Result[None, GitError]:
        """Create or reset `branch` at `start_point` and check it out."""
        return self._void("checkout", ["checkout", "--quiet", "-B", branch, start_point])

    def add_all(self) -> Result[None, GitError]:
        """Stage every change, including deletions and ignored files."""
        return self._void("add", ["add", "--all", "--force", "."])

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status.

        Returns:
            Ok(GitStatus) on success
            Err(GitError) on failure
        """
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(self._error("status", e))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def commit(
        self,
        message: str,
        identity: GitIdentity,
        *,
        allow_empty: bool = False,
    ) -> Result[str, GitError]:
        """Commit the index as `identity` and return the new HEAD sha."""
        args = ["commit", "--quiet", "--no-verify", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        config = {"user.name": identity.name, "user.email": identity.email}
        result = self._run(args, config=config)
        if isinstance(result, Err):
            return Err(self._error("commit", result.error))
        return self.head_sha()

    def head_sha(self) -> Result[str, GitError]:
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(self._error("rev-parse", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def tag(self, name: str) -> Result[None, GitError]:
        """Create a lightweight tag at HEAD. Fails if the tag exists."""
        return self._void("tag", ["tag", name])

    def push(
        self,
        url: str,
        refspecs: list[str],
        *,
        force: bool = False,
        tags: bool = False,
    ) -> Result[None, GitError]:
        """Push refspecs to url, optionally forced and with all tags."""
        args = ["push", "--quiet"]
        if force:
            args.append("--force")
        if tags:
            args.append("--tags")
        args.append(url)
        args.extend(refspecs)
        return self._void("push", args)

    def _void(
        self,
        command: str,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
    ) -> Result[None, GitError]:
        result = self._run(args, env=env)
        if isinstance(result, Err):
            return Err(self._error(command, result.error))
        return Ok(None)

    def _error(self, command: str, e: ProcessError) -> GitError:
        message = e.stderr.strip() or e.stdout.strip() or f"git {command} failed"
        return GitError(
            command=command,
            message=message,
            returncode=e.returncode,
        )

    def _run(
        self,
        args: list[str],
        *,
        config: dict[str, str] | None = None,
        env: dict[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        overrides: list[str] = []
        for key, value in (config or {}).items():
            overrides.extend(["-c", f"{key}={value}"])
        full_env = {**os.environ, **_GIT_ENV, **(env or {})}
        return run_process(
            ["git", "-C", str(self.path), *overrides, *args],
            cwd=self.path,
            env=full_env,
            secrets=self._secrets,
        )

    def _parse_status(self, output: str) -> GitStatus:
        """Parse `git status --porcelain=v1 -b` output."""
        branch = ""
        entries: list[StatusEntry] = []
        for line in output.splitlines():
            if line.startswith("## "):
                branch = self._parse_branch_line(line)
            elif len(line) > 3:
                entries.append(StatusEntry(xy=line[:2], path=line[3:]))
        return GitStatus(branch=branch, entries=tuple(entries))

    def _parse_branch_line(self, line: str) -> str:
        """Branch name from `## main...origin/main [ahead 1]` or `## No commits yet on main`."""
        head = line[3:].split(" [", 1)[0].strip()
        for prefix in ("No commits yet on ", "Initial commit on "):
            head = head.removeprefix(prefix)
        return head.split("...", 1)[0]
