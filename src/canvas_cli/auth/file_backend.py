"""Credential backend on owner-only JSON files.

Layout::

    <data_dir>/credentials/          (0o700)
        <instance>.json              (0o600)

Writes go through :func:`~canvas_cli.config.atomic_write`, so a record is
either fully replaced or untouched, and the permissions are applied before
the secret is written.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from canvas_cli.auth.base import CredentialBackend, decode_record, encode_record
from canvas_cli.config import atomic_write, get_data_dir
from canvas_cli.exceptions import CredentialBackendError, CredentialNotFoundError, InvalidUsageError
from canvas_cli.models import Credential
from canvas_cli.output import debug

DIR_MODE = 0o700
FILE_MODE = 0o600


class FileBackend(CredentialBackend):
    """Store each credential in ``<directory>/<instance>.json``.

    Args:
        directory: Override the credentials directory (defaults to
            ``get_data_dir() / "credentials"``).
    """

    name = "file"

    def __init__(self, directory: Optional[Path] = None) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        if self._directory is None:
            self._directory = get_data_dir() / "credentials"
        return self._directory

    def path_for(self, instance: str) -> Path:
        if not instance or instance.startswith(".") or "/" in instance or "\\" in instance:
            raise InvalidUsageError(f"Invalid instance name: {instance!r}")
        return self.directory / f"{instance}.json"

    def probe(self) -> None:
        try:
            self._ensure_directory()
        except OSError as exc:
            raise CredentialBackendError(f"credentials directory unusable: {exc}") from exc
        if not os.access(self.directory, os.W_OK):
            raise CredentialBackendError(f"credentials directory {self.directory} is not writable")

    def save(self, instance: str, credential: Credential) -> None:
        path = self.path_for(instance)
        try:
            self._ensure_directory()
            atomic_write(path, encode_record(credential), mode=FILE_MODE)
        except OSError as exc:
            raise CredentialBackendError(f"Failed to write {path}: {exc}") from exc
        debug(f"Credential for '{instance}' saved to {path}")

    def load(self, instance: str) -> Credential:
        path = self.path_for(instance)
        if not path.is_file():
            raise CredentialNotFoundError(instance)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CredentialBackendError(f"Failed to read {path}: {exc}") from exc
        return decode_record(text, str(path))

    def delete(self, instance: str) -> None:
        path = self.path_for(instance)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise CredentialBackendError(f"Failed to delete {path}: {exc}") from exc

    def _ensure_directory(self) -> None:
        self.directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        os.chmod(self.directory, DIR_MODE)
