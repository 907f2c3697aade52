"""Archive materialization.

Crate archives are gzip tarballs with a single `{name}-{version}/` wrapper
directory. Materializing one writes its regular files into a fresh
destination with that wrapper removed.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from crate_mirror.core.mirror_errors import ExtractionError
from crate_mirror.core.result import Err, Ok, Result

__all__ = ["ArchiveMaterializer", "MaterializedTree"]


@dataclass(frozen=True, slots=True)
class MaterializedTree:
    """Result of a materialization.

    Attributes:
        root: Directory holding the extracted files
        files_count: Number of files written
    """

    root: Path
    files_count: int


class ArchiveMaterializer:
    """Extract tar archives, dropping leading path components.

    Usage:
        result = ArchiveMaterializer().materialize(archive, dest)
        if is_ok(result):
            print(f"Extracted {result.value.files_count} files")
    """

    def __init__(self, strip_components: int = 1) -> None:
        self.strip_components = strip_components

    def materialize(self, archive: Path, dest: Path) -> Result[MaterializedTree, ExtractionError]:
        """Extract archive into dest, which is recreated empty first."""
        if not archive.is_file():
            return Err(ExtractionError(archive=archive, message="archive not found"))

        try:
            if dest.exists():
                shutil.rmtree(dest)
            dest.mkdir(parents=True)
            root = dest.resolve()

            files_count = 0
            with tarfile.open(archive, "r:*") as tar:
                for member in tar:
                    # Directories are implied by file paths; links and devices are skipped
                    if not member.isreg():
                        continue

                    rel_path = self._safe_relative_path(member.name)
                    if rel_path is None:
                        continue

                    full_path = dest / rel_path
                    if not self._is_within_root(root, full_path):
                        continue

                    src = tar.extractfile(member)
                    if src is None:
                        continue

                    full_path.parent.mkdir(parents=True, exist_ok=True)
                    with src, open(full_path, "wb") as out:
                        shutil.copyfileobj(src, out)

                    mode = member.mode & 0o777
                    if mode:
                        with contextlib.suppress(OSError):
                            os.chmod(full_path, mode)

                    files_count += 1

            return Ok(MaterializedTree(root=dest, files_count=files_count))

        except tarfile.TarError as e:
            return Err(ExtractionError(archive=archive, message=f"tar extraction failed: {e}"))
        except (OSError, EOFError) as e:
            return Err(ExtractionError(archive=archive, message=f"I/O error: {e}"))

    def _safe_relative_path(self, member_name: str) -> Path | None:
        """Strip leading components; None if nothing is left or the path is unsafe."""
        normalized = member_name.replace("\\", "/")
        if normalized.startswith("/"):
            return None

        parts = PurePosixPath(normalized).parts
        if len(parts) <= self.strip_components:
            return None

        kept = parts[self.strip_components :]
        if any(part in {"", ".", ".."} for part in kept):
            return None
        if kept[0].endswith(":"):
            return None

        return Path(*kept)

    def _is_within_root(self, root: Path, target: Path) -> bool:
        try:
            return target.resolve().is_relative_to(root)
        except OSError:
            return False
