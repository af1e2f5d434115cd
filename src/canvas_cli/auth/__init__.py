"""Credential storage for canvas-cli.

Access tokens are kept per instance in the OS keyring when one is usable,
otherwise in owner-only files under the data directory. The backend is
chosen once per process; see :mod:`canvas_cli.auth.credential_store`.
"""

from canvas_cli.auth.base import CredentialBackend
from canvas_cli.auth.credential_store import (
    BackendSelection,
    CredentialStore,
    select_backend,
)
from canvas_cli.auth.file_backend import FileBackend
from canvas_cli.auth.keyring_backend import KeyringBackend

__all__ = [
    "BackendSelection",
    "CredentialBackend",
    "CredentialStore",
    "FileBackend",
    "KeyringBackend",
    "select_backend",
]
