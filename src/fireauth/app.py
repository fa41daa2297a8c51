"""Typer application and CLI entry point for fireauth.

The ``fireauth`` command is a small front-end over
:class:`~fireauth.auth.AuthClient`: it signs users in, prints sessions, and
runs account operations from a refresh token supplied on each invocation.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers and invokes the Typer app.
:class:`~fireauth.exceptions.FireauthError` instances end the process with
their ``exit_code``; any other exception is written to a crash log under
the data directory.

See Also:
    :mod:`fireauth.config`: API key and base URL resolution.
    :mod:`fireauth.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from fireauth import __version__
from fireauth.commands.account import (
    delete_account_command,
    update_profile_command,
    verify_email_command,
    whoami_command,
)
from fireauth.commands.config import config_app
from fireauth.commands.session import (
    anonymous_command,
    custom_token_command,
    providers_command,
    reset_password_command,
    sign_in_command,
    sign_up_command,
)
from fireauth.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="fireauth",
    help="Sign in to a Firebase project and manage the account from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("sign-up")(sign_up_command)
app.command("sign-in")(sign_in_command)
app.command("anonymous")(anonymous_command)
app.command("custom-token")(custom_token_command)
app.command("reset-password")(reset_password_command)
app.command("providers")(providers_command)
app.command("whoami")(whoami_command)
app.command("update-profile")(update_profile_command)
app.command("verify-email")(verify_email_command)
app.command("delete-account")(delete_account_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fireauth {__version__}")
        raise typer.Exit()


def _configured_format() -> str:
    from fireauth.config import load_global_config
    from fireauth.exceptions import ConfigError

    try:
        return load_global_config().output.format
    except ConfigError:
        # The command itself reports the broken file if it needs the config.
        return "auto"


def _install_log_handler(verbose: bool) -> None:
    """Forward library log records to the CLI's stderr when ``--verbose`` is set.

    Without ``--verbose`` the records are discarded: failures reach the user
    through the formatted error that :func:`main` prints, not through
    :data:`logging.lastResort`.
    """
    from fireauth.output import OutputLogHandler

    logger = logging.getLogger("fireauth")
    for handler in list(logger.handlers):
        if isinstance(handler, (OutputLogHandler, logging.NullHandler)):
            logger.removeHandler(handler)
    if verbose:
        logger.addHandler(OutputLogHandler())
        logger.setLevel(logging.DEBUG)
    else:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)


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
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Project web API key (overrides FIREAUTH_API_KEY and config)."
    ),
    show_tokens: bool = typer.Option(
        False, "--show-tokens", help="Print identity and refresh tokens instead of redacting them."
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
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~fireauth.output.OutputManager` from CLI
    flags (falling back to ``output.format`` in the global config) and
    stores shared options in ``ctx.obj``.
    """
    from fireauth.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(_configured_format())
        except ValueError:
            fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _install_log_handler(verbose)

    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["show_tokens"] = show_tokens
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from fireauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``fireauth`` console script.

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
        sys.exit(130)
    except Exception as exc:
        from fireauth.exceptions import FireauthError, RefreshFailed
        from fireauth.output import error, suggest

        if isinstance(exc, FireauthError):
            error(str(exc))
            if isinstance(exc, RefreshFailed) and exc.requires_reauthentication:
                suggest("The refresh token is no longer valid; sign in again")
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
