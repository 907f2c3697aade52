"""Mirror orchestration: resolve, fetch, materialize, synchronize.

`MirrorService.run` executes the stages strictly in order and returns the
first error unchanged. It never exits the process; the CLI maps the error
to an exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from crate_mirror.core.config import MirrorMode
from crate_mirror.core.mirror_errors import MirrorError, RepositoryError
from crate_mirror.core.result import Err, Ok, Result
from crate_mirror.output.console import Style
from crate_mirror.platform.files import reset_directory
from crate_mirror.registry.extract import ArchiveMaterializer
from crate_mirror.registry.fetch import ArchiveFetcher
from crate_mirror.registry.resolver import VersionResolver
from crate_mirror.services.synchronizer import (
    RepositorySynchronizer,
    SyncOutcome,
    create_synchronizer,
)

if TYPE_CHECKING:
    from pathlib import Path

    from crate_mirror.core.config import MirrorConfig
    from crate_mirror.output.console import ConsoleProtocol
    from crate_mirror.registry.http import HttpClient
    from crate_mirror.registry.resolver import PackageIdentity

__all__ = ["MirrorService"]


class MirrorService:
    """Run one mirror job for the package named in the config.

    Usage:
        service = MirrorService(config=config, http=RealHttpClient(), console=RichConsole())
        match service.run():
            case Ok(outcome):
                ...
            case Err(error):
                ...
    """

    def __init__(
        self,
        *,
        config: MirrorConfig,
        http: HttpClient,
        console: ConsoleProtocol,
        materializer: ArchiveMaterializer | None = None,
    ) -> None:
        self._config = config
        self._http = http
        self._console = console
        self._materializer = materializer or ArchiveMaterializer()

    def run(self) -> Result[SyncOutcome, MirrorError]:
        config = self._config
        self._console.header(f"Mirroring {config.package} ({config.mode.value} mode)")

        # CLONE mode must fail on missing credentials before any network call
        synchronizer = create_synchronizer(config, self._console)
        if isinstance(synchronizer, Err):
            return synchronizer

        prepared = self._prepare_work_dir()
        if isinstance(prepared, Err):
            return prepared

        resolver = VersionResolver(self._http, config.api_base)
        resolved = resolver.resolve(config.package)
        if isinstance(resolved, Err):
            return resolved
        identity = resolved.value
        self._console.info(f"latest version: {identity.version}")

        fetcher = ArchiveFetcher(self._http, config.scratch_dir, config.download_base)
        fetched = fetcher.fetch(identity)
        if isinstance(fetched, Err):
            return fetched
        archive = fetched.value
        self._console.print(f"downloaded {archive.url} ({archive.size} bytes)", Style.DIM)

        materialized = self._materializer.materialize(archive.path, config.source_dir)
        if isinstance(materialized, Err):
            return materialized
        self._console.print(f"extracted {materialized.value.files_count} files", Style.DIM)

        return self._synchronize(synchronizer.value, identity, materialized.value.root)

    def _synchronize(
        self,
        synchronizer: RepositorySynchronizer,
        identity: PackageIdentity,
        source: Path,
    ) -> Result[SyncOutcome, MirrorError]:
        result = synchronizer.synchronize(identity, source)
        if isinstance(result, Err):
            return result

        outcome = result.value
        if outcome.tag_warning is not None:
            w = outcome.tag_warning
            self._console.warning(f"could not create tag {w.tag}: {w.message}")
        return Ok(outcome)

    def _prepare_work_dir(self) -> Result[None, RepositoryError]:
        config = self._config
        try:
            reset_directory(config.scratch_dir)
            config.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(
                RepositoryError(
                    operation="prepare",
                    message=f"cannot prepare work dir {config.work_dir}: {e}",
                )
            )
        if config.mode == MirrorMode.fresh:
            self._console.print("history will be replaced (fresh mode)", Style.DIM)
        return Ok(None)
