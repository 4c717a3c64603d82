"""Command-line interface for taskgraph."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from taskgraph import __version__
from taskgraph.cli_commands.report import show_report
from taskgraph.config import ConfigError, load_settings
from taskgraph.console_logger import ConsoleLogger
from taskgraph.errors import TaskgraphError
from taskgraph.logging import Logger, LogLevel
from taskgraph.provider import TaskfileProvider
from taskgraph.taskfile import PromptDeclinedError, ReaderOptions
from taskgraph.taskfile.reader import DebugFn, PromptFn, default_temp_dir

app = typer.Typer(
    help="taskgraph - Inspect a Taskfile's includes and task dependency tree",
    add_completion=False,
    no_args_is_help=False,
)

LOG_LEVEL_NAMES = [level.name.lower() for level in LogLevel]


def _version_callback(value: bool) -> None:
    if value:
        Console().print(f"taskgraph version {__version__}")
        raise typer.Exit()


def _parse_log_level(value: str) -> LogLevel:
    try:
        return LogLevel[value.upper()]
    except KeyError:
        raise typer.BadParameter(
            f"'{value}' is not one of {', '.join(LOG_LEVEL_NAMES)}"
        )


def _make_debug_func(logger: Logger) -> DebugFn:
    def debug(message: str) -> None:
        logger.debug(f"DEBUG: {escape(message)}")

    return debug


def _make_prompt_func(logger: Logger, interactive: bool) -> PromptFn:
    """
    Build the trust confirmation hook for remote Taskfiles.

    Without ``interactive`` every prompt is accepted and logged as a warning.
    """
    def prompt(message: str) -> None:
        if interactive:
            if not typer.confirm(message, default=False):
                raise PromptDeclinedError("remote Taskfile was not trusted")
            return
        logger.warn(f"PROMPT: {escape(message)}")
        logger.warn("Auto-approved; pass --prompt to confirm interactively")

    return prompt


@app.command()
def analyze(
    taskfile: Optional[str] = typer.Option(
        None,
        "--taskfile",
        "-t",
        envvar="TASKGRAPH_TASKFILE",
        help="Taskfile path, directory, URL or git reference",
    ),
    start: Optional[str] = typer.Option(
        None, "--start", "-s", help="Task to start dependency tree from"
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Force download without using cache"
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Allow Taskfiles to be fetched over plain HTTP"
    ),
    offline: bool = typer.Option(
        False,
        "--offline",
        envvar="TASKGRAPH_OFFLINE",
        help="Use cached remote Taskfiles only, never the network",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds allowed for each remote fetch"
    ),
    cache_expiry: Optional[float] = typer.Option(
        None, "--cache-expiry", help="Seconds a cached remote Taskfile stays fresh"
    ),
    temp_dir: Optional[Path] = typer.Option(
        None,
        "--temp-dir",
        envvar="TASKGRAPH_TEMP_DIR",
        help="Directory for the remote Taskfile cache",
    ),
    prompt: bool = typer.Option(
        False, "--prompt", help="Ask before trusting new or changed remote Taskfiles"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit with an error if the start task doesn't exist"
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-L",
        help=f"Log verbosity ({', '.join(LOG_LEVEL_NAMES)})",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Print a Taskfile's inclusion graph, its tasks, and the dependency tree of one task.
    """
    console = Console(highlight=False, soft_wrap=True, emoji=False)
    logger = ConsoleLogger(console, _parse_log_level(log_level))

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.fatal(escape(str(e)))
        raise typer.Exit(1)

    if temp_dir is None:
        temp_dir = Path(settings.temp_dir) if settings.temp_dir else default_temp_dir()

    options = ReaderOptions(
        insecure=insecure or settings.insecure,
        download=no_cache,
        offline=offline or settings.offline,
        temp_dir=temp_dir,
        cache_expiry=settings.cache_expiry if cache_expiry is None else cache_expiry,
        timeout=settings.timeout if timeout is None else timeout,
        debug_func=_make_debug_func(logger),
        prompt_func=_make_prompt_func(logger, prompt),
    )
    provider = TaskfileProvider(options)

    try:
        show_report(
            logger,
            provider,
            settings.taskfile if taskfile is None else taskfile,
            settings.start if start is None else start,
            strict=strict,
        )
    except TaskgraphError as e:
        log = logger.fatal if e.kind.fatal else logger.error
        log(escape(e.describe()))
        raise typer.Exit(1)


def main() -> None:
    """Entry point for the taskgraph console script."""
    app()


if __name__ == "__main__":
    main()
