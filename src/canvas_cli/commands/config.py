"""Config commands -- view and modify the global configuration.

Provides the ``canvas config`` sub-command group for reading and updating
``config.json`` (:class:`~canvas_cli.models.GlobalConfig`): request tuning
under ``settings.*``, the output format, the response cache and the default
instance.
"""

from __future__ import annotations

import typer

from canvas_cli.commands import helpers
from canvas_cli.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)

_SETTABLE_SECTIONS = ("settings", "output", "cache")


@config_app.command("show")
def config_show() -> None:
    """Show the current configuration.

    Example::

        canvas config show
        canvas --json config show
    """
    from canvas_cli.config import config_path, load_global_config

    with helpers.handle_errors():
        config = load_global_config()
    info(f"Config file: {config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key in dot notation, e.g. 'settings.requests_per_second'."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field (bool, int or
    float) and the whole configuration is validated before saving.

    Example::

        canvas config set settings.requests_per_second 2.5
        canvas config set settings.per_page 50
        canvas config set output.format json
        canvas config set cache.enabled true
    """
    from pydantic import ValidationError as PydanticValidationError

    from canvas_cli.config import load_global_config, save_global_config
    from canvas_cli.models import GlobalConfig

    with helpers.handle_errors():
        config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    if len(keys) != 2 or keys[0] not in _SETTABLE_SECTIONS:
        error(f"Invalid config key: {key}")
        info("Settable keys: " + ", ".join(_settable_keys(data)))
        raise typer.Exit(code=2)

    section, field = keys
    target = data[section]
    if field not in target:
        error(f"Unknown config key: {key}")
        info("Settable keys: " + ", ".join(_settable_keys(data)))
        raise typer.Exit(code=2)

    current = target[field]
    try:
        if isinstance(current, bool):
            coerced: object = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            coerced = int(value)
        elif isinstance(current, float):
            coerced = float(value)
        else:
            coerced = value
    except ValueError:
        error(f"Expected {type(current).__name__} for {key}, got: {value}")
        raise typer.Exit(code=2) from None

    target[field] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except PydanticValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    with helpers.handle_errors():
        save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("use")
def config_use(
    name: str = typer.Argument(help="Instance name or URL to make the default."),
) -> None:
    """Make an instance the default.

    Example::

        canvas config use school
    """
    from canvas_cli.config import find_instance, load_global_config, save_global_config

    with helpers.handle_errors():
        config = load_global_config()
        instance = find_instance(config, name)
        save_global_config(config.model_copy(update={"default_instance": instance.name}))
    success(f"Default instance is now '{instance.name}'.")


def _settable_keys(data: dict) -> list[str]:
    return [f"{section}.{field}" for section in _SETTABLE_SECTIONS for field in data[section]]
