"""Build the one :class:`~canvas_cli.models.ClientConfig` of a process run.

Resolution order:

1. ``CANVAS_URL`` and ``CANVAS_TOKEN`` both set: use them as is. The
   configuration file and the credential store are not consulted (CI use).
2. Otherwise the instance named by ``--instance`` (name or URL) or the
   default instance is looked up in the configuration file, and its
   credential is loaded once from the credential store.

``CANVAS_REQUESTS_PER_SEC`` overrides the configured request rate in both
cases. The GET response cache follows the ``cache`` section of the
configuration file (so it stays off in the environment case) unless
``--no-cache`` is given.
"""

from __future__ import annotations

import math
import os
from typing import Callable, Mapping, Optional

from canvas_cli import __version__
from canvas_cli.auth.credential_store import CredentialStore
from canvas_cli.config import find_instance, load_global_config
from canvas_cli.exceptions import ConfigError
from canvas_cli.models import CacheConfig, ClientConfig, GlobalConfig, InvocationOptions, Settings
from canvas_cli.output import debug, warning

ENV_URL = "CANVAS_URL"
ENV_TOKEN = "CANVAS_TOKEN"
ENV_REQUESTS_PER_SEC = "CANVAS_REQUESTS_PER_SEC"

StoreFactory = Callable[[], CredentialStore]
ConfigLoader = Callable[[], GlobalConfig]


def user_agent() -> str:
    return f"canvas-cli/{__version__}"


def resolve_client_config(
    options: InvocationOptions,
    env: Optional[Mapping[str, str]] = None,
    store_factory: StoreFactory = CredentialStore.create,
    config_loader: ConfigLoader = load_global_config,
) -> ClientConfig:
    """Resolve global flags, environment and stored state into a :class:`ClientConfig`.

    Args:
        options: Global CLI flags of this invocation.
        env: Environment mapping (defaults to ``os.environ``).
        store_factory: Builds the credential store; only called when the
            environment does not supply a token.
        config_loader: Loads the global configuration file.

    Raises:
        ConfigError: Unknown instance, no default instance, or an
            unparseable ``CANVAS_REQUESTS_PER_SEC``.
        CredentialNotFoundError: The instance has no stored credential.
        CredentialBackendError: The credential store failed.
    """
    env = os.environ if env is None else env
    rate_override = _parse_rate(env.get(ENV_REQUESTS_PER_SEC))

    env_url = env.get(ENV_URL, "")
    env_token = env.get(ENV_TOKEN, "")
    if env_url and env_token:
        debug("Using Canvas credentials from environment variables")
        return _build(options, Settings(), env_url, env_token, rate_override, CacheConfig())

    global_config = config_loader()
    instance = find_instance(global_config, options.instance)
    credential = store_factory().load(instance.name)
    if credential.is_expired():
        warning(f"Stored token for '{instance.name}' has expired; requests may be rejected")
    debug(f"Using instance '{instance.name}' ({instance.url})")

    return _build(
        options,
        global_config.settings,
        instance.url,
        credential.token,
        rate_override,
        global_config.cache,
    )


def _build(
    options: InvocationOptions,
    settings: Settings,
    base_url: str,
    token: str,
    rate_override: Optional[float],
    cache: CacheConfig,
) -> ClientConfig:
    cache_ttl = cache.ttl_seconds if cache.enabled and not options.no_cache else 0
    return ClientConfig(
        base_url=base_url,
        token=token,
        requests_per_second=settings.requests_per_second if rate_override is None else rate_override,
        as_user_id=options.as_user_id,
        timeout=options.timeout or settings.timeout,
        max_attempts=settings.max_attempts,
        user_agent=user_agent(),
        max_results=options.limit,
        per_page=settings.per_page,
        cache_ttl=cache_ttl,
        dry_run=options.dry_run,
        show_token=options.show_token,
    )


def _parse_rate(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        rate = float(value)
    except ValueError:
        rate = math.nan
    if not math.isfinite(rate):
        raise ConfigError(f"Invalid {ENV_REQUESTS_PER_SEC} value {value!r}: expected a number")
    return rate
