"""Config commands -- view and modify client settings.

Provides the ``netclient config`` sub-command group. ``show`` prints the
effective settings after precedence resolution, ``path`` prints where the
user file lives, and ``set`` updates a single key in the user file.
"""

from __future__ import annotations

from typing import Any

import typer

from netclient.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective settings.

    The files that contributed are listed on stderr, the merged settings
    go to stdout.

    Example::

        netclient config show
        netclient --config ./staging.yaml config show --json
    """
    from netclient.config import resolve_settings, settings_files
    from netclient.exceptions import ConfigError

    obj = ctx.obj or {}
    try:
        files = settings_files(obj.get("config_path"))
        settings = resolve_settings(
            config_path=obj.get("config_path"),
            cli_base_url=obj.get("base_url"),
        )
    except ConfigError as exc:
        error(f"Config error: {exc.message}")
        raise typer.Exit(code=exc.exit_code) from None

    for path in files:
        info(f"Loaded: {path}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("path")
def config_path() -> None:
    """Print the user configuration directory."""
    from netclient.config import get_config_dir
    from netclient.output import get_output

    get_output().print_data(str(get_config_dir()))


def _coerce(current: Any, value: str, key: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Settings key in dot notation, e.g. 'retry.max_retries'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a value in the user settings file.

    The value is coerced to the type of the existing field and the result
    is validated before it is written.

    Example::

        netclient config set base_url https://api.example.com
        netclient config set retry.max_retries 3
        netclient config set logging.enabled true
    """
    from netclient.config import read_settings_document, save_user_settings, user_config_path
    from netclient.exceptions import ConfigError
    from netclient.models import ClientSettings

    try:
        existing = user_config_path()
        stored = read_settings_document(existing) if existing is not None else {}
        data = ClientSettings.model_validate(stored).model_dump(mode="json")
    except (ConfigError, ValueError) as exc:
        error(f"Config error: {exc}")
        raise typer.Exit(code=1) from None

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            error(f"Invalid settings key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown settings key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(target[final_key], value, key)
    target[final_key] = coerced

    try:
        path = save_user_settings(data)
    except ConfigError as exc:
        error(f"Validation error: {exc.message}")
        raise typer.Exit(code=2) from None

    success(f"Set {key} = {coerced} in {path}")
