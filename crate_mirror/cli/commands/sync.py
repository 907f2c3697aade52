"""Sync command - mirror the latest crate release into the target repository."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer

from crate_mirror.cli.context import build_context
from crate_mirror.core.config import MirrorMode
from crate_mirror.core.errors import ErrorCode
from crate_mirror.core.result import Err, Ok
from crate_mirror.output.errors import mirror_error_exit_code, print_mirror_error, print_outcome
from crate_mirror.services.mirror import MirrorService

if TYPE_CHECKING:
    from crate_mirror.cli.context import CLIContext


def run_sync(ctx: CLIContext) -> int:
    """Run the mirror job and return the process exit code."""
    service = MirrorService(config=ctx.config, http=ctx.http, console=ctx.console)
    match service.run():
        case Err(e):
            print_mirror_error(e, ctx.console)
            return mirror_error_exit_code(e)
        case Ok(outcome):
            print_outcome(outcome, ctx.console)
            return int(ErrorCode.OK)


def sync(
    config: Path | None = typer.Option(
        None,
        "--config",
        help="TOML config file (environment variables take precedence)",
        exists=True,
        dir_okay=False,
    ),
    package: str | None = typer.Option(None, "--package", help="Crate to mirror (CRATE_NAME)"),
    mode: MirrorMode | None = typer.Option(
        None,
        "--mode",
        help="fresh: new history each run, force pushed | clone: append to existing history",
    ),
    work_dir: Path | None = typer.Option(
        None, "--work-dir", help="Scratch and working-copy directory (MIRROR_WORK_DIR)"
    ),
) -> None:
    """Mirror the latest published release of a crate."""
    ctx = build_context(
        config_path=config,
        overrides={
            "package": package,
            "mode": mode.value if mode is not None else None,
            "work_dir": str(work_dir) if work_dir is not None else None,
        },
    )
    code = run_sync(ctx)
    if not ErrorCode(code).is_success:
        raise typer.Exit(code=code)
