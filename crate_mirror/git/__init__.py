"""Git operations for the mirror working copy.

Usage:
    from crate_mirror.git import GitIdentity, Repository

    repo = Repository(Path("work/repo"))
    repo.init("main")
    repo.add_all()
    repo.commit("Mirror of serde version 1.0.0 from crates.io", GitIdentity("bot", "bot@x"))
"""

from crate_mirror.git.repository import (
    GitError,
    GitIdentity,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitError",
    "GitIdentity",
    "GitStatus",
    "Repository",
    "StatusEntry",
]
