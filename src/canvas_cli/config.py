"""Configuration management with XDG paths and atomic writes.

This module handles all persistent configuration for canvas-cli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.canvas-cli/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir` and :func:`get_cache_dir`.
* **Global config** -- a single :class:`~canvas_cli.models.GlobalConfig`
  JSON file holding the configured instances, the default instance and
  request settings.
* **Instance lookup** -- :func:`find_instance` resolves ``--instance`` by
  name or URL, falling back to the default instance.

Credentials are *not* stored here; see
:mod:`canvas_cli.auth.credential_store`. All file writes use an atomic
temp-file-then-rename strategy (:func:`atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from canvas_cli.exceptions import ConfigError
from canvas_cli.models import GlobalConfig, Instance

APP_NAME = "canvas-cli"
_CONFIG_FILENAME = "config.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/canvas-cli/`` (default ``~/.config/canvas-cli/``).
    On macOS/Windows: ``~/.canvas-cli/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory (HTTP response cache), creating it if necessary.

    Cached data can be deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/canvas-cli/`` (default ``~/.cache/canvas-cli/``).
    On macOS/Windows: ``~/.canvas-cli/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the per-user data directory (credential files, crash logs).

    On Linux/BSD: ``$XDG_DATA_HOME/canvas-cli/`` (default ``~/.local/share/canvas-cli/``).
    On macOS/Windows: ``~/.canvas-cli/data/``.

    The directory is created owner-only (``0o700``) because it may hold
    credential files.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX. When *mode* is given the
    permissions are applied to the temp file before any content is written,
    so the final file is never readable with looser permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration.

    Returns:
        The deserialised :class:`~canvas_cli.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, PydanticValidationError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically."""
    data = config.model_dump(mode="json")
    atomic_write(config_path(), json.dumps(data, indent=2) + "\n")


# --- Instances ---


def add_instance(config: GlobalConfig, instance: Instance, make_default: bool = False) -> GlobalConfig:
    """Return a copy of *config* with *instance* added or replaced.

    The first instance ever added becomes the default.
    """
    instances = {**config.instances, instance.name: instance}
    default = config.default_instance
    if make_default or default is None:
        default = instance.name
    return config.model_copy(update={"instances": instances, "default_instance": default})


def remove_instance(config: GlobalConfig, name: str) -> GlobalConfig:
    """Return a copy of *config* without instance *name*.

    Raises:
        ConfigError: If no such instance exists.
    """
    if name not in config.instances:
        raise ConfigError(f"Instance '{name}' is not configured")
    instances = {k: v for k, v in config.instances.items() if k != name}
    default = config.default_instance
    if default == name:
        default = next(iter(instances), None)
    return config.model_copy(update={"instances": instances, "default_instance": default})


def find_instance(config: GlobalConfig, name_or_url: Optional[str] = None) -> Instance:
    """Resolve the instance to talk to.

    Args:
        config: Loaded global configuration.
        name_or_url: Value of ``--instance``; matched against instance names
            first, then URLs. ``None`` selects the default instance.

    Raises:
        ConfigError: If nothing matches or no default is configured.
    """
    if name_or_url:
        if name_or_url in config.instances:
            return config.instances[name_or_url]
        wanted = name_or_url.rstrip("/")
        for instance in config.instances.values():
            if instance.url == wanted:
                return instance
        err = ConfigError(f"No instance found with name or URL: {name_or_url}")
        err.suggestion = "List configured instances: canvas auth status"
        raise err

    if config.default_instance and config.default_instance in config.instances:
        return config.instances[config.default_instance]

    err = ConfigError("No default instance configured")
    err.suggestion = "Log in first: canvas auth login --instance NAME --url URL"
    raise err
