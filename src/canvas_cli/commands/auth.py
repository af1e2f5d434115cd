"""Auth commands -- manage access tokens per Canvas instance.

Typical workflow::

    canvas auth login --instance school --url https://school.instructure.com
    canvas auth status
    canvas auth logout --instance school

Tokens are kept by the credential store (OS keyring, else owner-only
files); the instance itself is recorded in the configuration file.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import typer

from canvas_cli.commands import helpers
from canvas_cli.commands.confirm import confirm_action
from canvas_cli.models import ClientConfig
from canvas_cli.output import debug, info, print_table, success, suggest

auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    instance: Optional[str] = typer.Option(
        None, "--instance", "-i", help="Instance name (e.g. 'school')."
    ),
    url: Optional[str] = typer.Option(
        None, "--url", "-u", help="Canvas base URL, e.g. https://school.instructure.com."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Access token (prompted for when omitted)."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default instance."
    ),
    verify: bool = typer.Option(
        True, "--verify/--no-verify", help="Check the token against /api/v1/users/self."
    ),
) -> None:
    """Store an access token for a Canvas instance.

    Generate a token in Canvas under Account > Settings > Approved
    Integrations. Unless ``--no-verify`` is given the token is checked with
    one request before anything is saved.

    Example::

        canvas auth login --instance school --url https://school.instructure.com
    """
    from canvas_cli.client.factory import user_agent
    from canvas_cli.config import add_instance, load_global_config, save_global_config
    from canvas_cli.exceptions import InvalidUsageError
    from canvas_cli.models import Credential, Instance

    options = helpers.get_options(ctx)
    with helpers.handle_errors():
        name = instance or options.instance
        if not name:
            raise InvalidUsageError("An instance name is required (--instance NAME)")

        config = load_global_config()
        existing = config.instances.get(name)
        base_url = url or (existing.url if existing else None)
        if not base_url:
            raise InvalidUsageError(f"Instance '{name}' is not configured yet; pass --url")
        if not base_url.startswith(("https://", "http://")):
            raise InvalidUsageError(f"Invalid URL '{base_url}': expected http(s)://...")
        target = Instance(name=name, url=base_url)

        if options.dry_run:
            info(f"DRY RUN: Would store a token for '{name}' ({target.url})")
            info("No changes were made.")
            return

        secret = token or typer.prompt("Access token", hide_input=True)
        if not secret.strip():
            raise InvalidUsageError("The access token must not be empty")
        secret = secret.strip()

        if verify:
            client_config = ClientConfig(
                base_url=target.url,
                token=secret,
                user_agent=user_agent(),
                timeout=options.timeout or config.settings.timeout,
                max_attempts=config.settings.max_attempts,
            )
            profile = helpers.run(_fetch_self(client_config))
            if isinstance(profile, dict) and profile.get("name"):
                info(f"Authenticated as {profile['name']}")

        store = helpers.open_store()
        store.save(name, Credential(instance=name, access_token=secret))
        save_global_config(add_instance(config, target, make_default=make_default))

    success(f"Logged in to '{name}' ({target.url}); token stored in {store.backend_name}.")
    for backend, reason in store.skipped:
        debug(f"Skipped credential backend {backend}: {reason}")


async def _fetch_self(config: ClientConfig) -> Any:
    async with helpers.client_for(config) as client:
        return await client.get_json("/api/v1/users/self")


@auth_app.command("logout")
def auth_logout(
    ctx: typer.Context,
    instance: Optional[str] = typer.Option(
        None, "--instance", "-i", help="Instance name (defaults to the default instance)."
    ),
    forget: bool = typer.Option(
        False, "--forget", help="Also remove the instance from the configuration."
    ),
) -> None:
    """Delete the stored token for an instance.

    Asks for confirmation unless ``--force`` is given.

    Example::

        canvas auth logout --instance school
        canvas --force auth logout --instance school --forget
    """
    from canvas_cli.config import find_instance, load_global_config, remove_instance, save_global_config

    options = helpers.get_options(ctx)
    with helpers.handle_errors():
        config = load_global_config()
        target = find_instance(config, instance or options.instance)

        action = f"remove the stored credential for '{target.name}'"
        if forget:
            action += " and forget the instance"
        if not confirm_action(options, action):
            if not options.dry_run:
                info("Cancelled.")
            raise typer.Exit()

        helpers.open_store().delete(target.name)
        if forget:
            save_global_config(remove_instance(config, target.name))

    success(f"Logged out of '{target.name}'.")


@auth_app.command("status")
def auth_status() -> None:
    """Show configured instances and whether each has a stored token."""
    from canvas_cli.client.factory import ENV_TOKEN, ENV_URL
    from canvas_cli.config import load_global_config
    from canvas_cli.exceptions import CredentialNotFoundError

    with helpers.handle_errors():
        if os.environ.get(ENV_URL) and os.environ.get(ENV_TOKEN):
            info(f"{ENV_URL} and {ENV_TOKEN} are set; they take precedence over stored credentials.")

        config = load_global_config()
        if not config.instances:
            info("No instances configured.")
            suggest("Log in first: canvas auth login --instance NAME --url URL")
            return

        store = helpers.open_store()
        rows: list[list[str]] = []
        for name, inst in sorted(config.instances.items()):
            try:
                credential = store.load(name)
            except CredentialNotFoundError:
                state = "no"
            else:
                state = "expired" if credential.is_expired() else "yes"
            default = "*" if name == config.default_instance else ""
            rows.append([name, inst.url, default, state])

    info(f"Credential backend: {store.backend_name}")
    for backend, reason in store.skipped:
        info(f"  skipped {backend}: {reason}")
    print_table(["Name", "URL", "Default", "Authenticated"], rows, title="Canvas instances")
