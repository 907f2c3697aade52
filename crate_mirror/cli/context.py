from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from crate_mirror.core.config import MirrorConfig, load_config
from crate_mirror.core.result import Err
from crate_mirror.output.console import ConsoleProtocol, RichConsole
from crate_mirror.output.errors import mirror_error_exit_code, print_mirror_error
from crate_mirror.registry.http import HttpClient, RealHttpClient


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: MirrorConfig
    console: ConsoleProtocol
    http: HttpClient


def build_context(
    *,
    config_path: Path | None,
    overrides: Mapping[str, str | None],
    environ: Mapping[str, str] | None = None,
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    """Load configuration once; a bad configuration exits before any work starts."""
    console = console or RichConsole(no_color="NO_COLOR" in os.environ)
    result = load_config(os.environ if environ is None else environ, config_path, overrides)
    if isinstance(result, Err):
        print_mirror_error(result.error, console)
        raise typer.Exit(code=mirror_error_exit_code(result.error))

    return CLIContext(config=result.value, console=console, http=RealHttpClient())
