"""Platform helpers: subprocesses and filesystem."""

from .files import clear_directory, copy_tree_into, list_files, reset_directory
from .process import ProcessError, run

__all__ = [
    "ProcessError",
    "clear_directory",
    "copy_tree_into",
    "list_files",
    "reset_directory",
    "run",
]
