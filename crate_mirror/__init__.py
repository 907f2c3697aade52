"""Mirror the latest crates.io release of a package into a git repository."""

__version__ = "0.1.0"
