"""Config commands -- view and modify global configuration.

Provides the ``fireauth config`` sub-command group for the user's
:class:`~fireauth.models.GlobalConfig` (API key source, base URLs,
timeouts, output format).
"""

from __future__ import annotations

import typer

from fireauth.config import (
    get_config_dir,
    load_global_config,
    save_global_config,
    set_global_value,
)
from fireauth.models import GlobalConfig
from fireauth.output import format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        fireauth config show
        fireauth --json config show
    """
    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'request.timeout')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Numeric fields are coerced from the string; the result is validated
    against :class:`~fireauth.models.GlobalConfig` before saving.

    Example::

        fireauth config set api_key_source env:FIREBASE_API_KEY
        fireauth config set request.timeout 30
        fireauth config set identity_base_url http://localhost:9099/identitytoolkit.googleapis.com/v1
    """
    set_global_value(key, value)
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
