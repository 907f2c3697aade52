"""Exit codes for the mirror job.

The scheduler only distinguishes zero from non-zero; the individual codes
tell an operator reading the job history which stage gave up.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: Success (a new release was mirrored, or the mirror is up to date)
    - 1: User error (missing or invalid configuration)
    - 2: Environment error (git not installed, work dir unusable)
    - 3: Git error (fetch, commit or push failed)
    - 4: Network error (registry query or archive download failed)
    - 5: I/O error (archive corrupt or unreadable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    GIT_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
