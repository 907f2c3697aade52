"""Subprocess execution with Result-based error handling.

Every failure comes back as a `ProcessError` whose command line and output
have already been scrubbed of the secrets passed to `run`, so callers can
print or store it as-is.

Usage:
    match run(["git", "push", auth_url, "HEAD:main"], cwd=repo, secrets=(token,)):
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"{error}: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from crate_mirror.core.result import Err, Ok, Result

__all__ = ["REDACTED", "ProcessError", "redact", "run"]

REDACTED = "***"


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every non-empty secret in text."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed (secrets redacted).
        returncode: The exit code of the process (-1 if it never started).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def _failure(
    cmd: list[str],
    returncode: int,
    stdout: str,
    stderr: str,
    secrets: tuple[str, ...],
) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=tuple(redact(arg, secrets) for arg in cmd),
            returncode=returncode,
            stdout=redact(stdout, secrets),
            stderr=redact(stderr, secrets),
        )
    )


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    secrets: Iterable[str] = (),
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).
        secrets: Strings masked in the error's command, stdout and stderr.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    masked = tuple(secrets)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return _failure(cmd, -1, "", f"Command timed out after {timeout}s", masked)
    except OSError as e:
        if isinstance(e, FileNotFoundError) and e.filename == cmd[0]:
            return _failure(cmd, -1, "", f"command not found: {cmd[0]}", masked)
        return _failure(cmd, -1, "", str(e), masked)

    if proc.returncode != 0:
        return _failure(cmd, proc.returncode, proc.stdout, proc.stderr, masked)

    return Ok(proc.stdout)
