"""Credential backend on the operating-system keyring.

Uses the :mod:`keyring` library (macOS Keychain, Windows Credential Locker,
Secret Service on Linux). Each credential is stored as a JSON record under
service ``canvas-cli`` with the instance name as the account.

The backend counts as unavailable when :mod:`keyring` resolved to its
``fail`` or ``null`` keyring (typical on headless machines) or when a probe
read raises. Keyring backends raise many unrelated exception types (D-Bus,
locked collections), so every call wraps whatever it raises in
:class:`~canvas_cli.exceptions.CredentialBackendError`.
"""

from __future__ import annotations

import keyring
from keyring.backends import fail, null

from canvas_cli.auth.base import CredentialBackend, decode_record, encode_record
from canvas_cli.exceptions import CredentialBackendError, CredentialNotFoundError
from canvas_cli.models import Credential
from canvas_cli.output import debug

KEYRING_SERVICE = "canvas-cli"
_PROBE_ACCOUNT = "__canvas-cli-probe__"


class KeyringBackend(CredentialBackend):
    """Store credentials in the OS keyring.

    Args:
        service: Keyring service name.
    """

    name = "keyring"

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self._service = service

    def probe(self) -> None:
        try:
            active = keyring.get_keyring()
        except Exception as exc:
            raise CredentialBackendError(f"keyring unavailable: {exc}") from exc
        if isinstance(active, (fail.Keyring, null.Keyring)):
            raise CredentialBackendError(
                f"no usable OS keyring ({type(active).__module__}.{type(active).__name__})"
            )
        try:
            keyring.get_password(self._service, _PROBE_ACCOUNT)
        except Exception as exc:
            raise CredentialBackendError(f"keyring probe failed: {exc}") from exc

    def save(self, instance: str, credential: Credential) -> None:
        try:
            keyring.set_password(self._service, instance, encode_record(credential))
        except Exception as exc:
            raise CredentialBackendError(f"Failed to save credential to keyring: {exc}") from exc
        debug(f"Credential for '{instance}' saved to keyring")

    def load(self, instance: str) -> Credential:
        try:
            value = keyring.get_password(self._service, instance)
        except Exception as exc:
            raise CredentialBackendError(f"Failed to read credential from keyring: {exc}") from exc
        if value is None:
            raise CredentialNotFoundError(instance)
        return decode_record(value, f"keyring entry '{self._service}/{instance}'")

    def delete(self, instance: str) -> None:
        try:
            if keyring.get_password(self._service, instance) is None:
                return
            keyring.delete_password(self._service, instance)
        except Exception as exc:
            raise CredentialBackendError(f"Failed to delete credential from keyring: {exc}") from exc
        debug(f"Credential for '{instance}' deleted from keyring")
