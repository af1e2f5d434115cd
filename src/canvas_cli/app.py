"""Typer application and CLI entry point for canvas-cli.

This module wires the root Typer application together, registers the
built-in sub-commands (``auth``, ``config``, ``api``, ``enrollments``) and
turns global flags into one :class:`~canvas_cli.models.InvocationOptions`
value that every command reads from ``ctx.obj``.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`canvas_cli.client.factory`: How the options become a client.
    :mod:`canvas_cli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from canvas_cli import __version__
from canvas_cli.commands.api import api_command
from canvas_cli.commands.auth import auth_app
from canvas_cli.commands.cache import cache_app
from canvas_cli.commands.config import config_app
from canvas_cli.commands.enrollments import enrollments_app
from canvas_cli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="canvas",
    help="Command-line client for the Canvas LMS REST API.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(auth_app, name="auth", help="Log in to and out of Canvas instances.")
app.add_typer(cache_app, name="cache", help="Inspect and clear the response cache.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.add_typer(enrollments_app, name="enrollments", help="Course and user enrollments.")
app.command("api")(api_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"canvas-cli {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    instance: Optional[str] = typer.Option(
        None, "--instance", help="Instance name or URL (defaults to the default instance)."
    ),
    as_user: int = typer.Option(
        0, "--as-user", min=0, help="Masquerade as this Canvas user ID (admins only)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache for this run."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print requests as curl commands instead of sending them."
    ),
    show_token: bool = typer.Option(
        False, "--show-token", help="Show the real token in --dry-run output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    limit: int = typer.Option(
        0, "--limit", min=0, help="Stop after this many items when listing (0 = all)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.1, help="Per-request timeout in seconds."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~canvas_cli.output.OutputManager` from
    CLI flags and stores an :class:`~canvas_cli.models.InvocationOptions`
    in ``ctx.obj`` for the sub-commands.
    """
    from canvas_cli.models import InvocationOptions
    from canvas_cli.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.obj = InvocationOptions(
        instance=instance,
        as_user_id=as_user,
        no_cache=no_cache,
        dry_run=dry_run,
        show_token=show_token,
        force=force,
        verbose=verbose,
        limit=limit,
        timeout=timeout,
    )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from canvas_cli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``canvas`` console script.

    Unhandled :class:`~canvas_cli.exceptions.CanvasCLIError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from canvas_cli.exceptions import CanvasCLIError
        from canvas_cli.output import error, suggest

        if isinstance(exc, CanvasCLIError):
            error(str(exc))
            if exc.suggestion:
                suggest(exc.suggestion)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
