"""In-memory keyrings for the credential backend tests."""

from __future__ import annotations

from typing import Optional

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError


class MemoryKeyring(KeyringBackend):
    """A working keyring that keeps passwords in a dict."""

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> Optional[str]:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if (service, username) not in self.passwords:
            raise PasswordDeleteError(username)
        del self.passwords[(service, username)]


class BrokenKeyring(KeyringBackend):
    """A keyring whose every call fails, like a locked Secret Service."""

    priority = 1

    def get_password(self, service: str, username: str) -> Optional[str]:
        raise KeyringError("collection is locked")

    def set_password(self, service: str, username: str, password: str) -> None:
        raise KeyringError("collection is locked")

    def delete_password(self, service: str, username: str) -> None:
        raise KeyringError("collection is locked")


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    return backend


@pytest.fixture
def broken_keyring() -> BrokenKeyring:
    backend = BrokenKeyring()
    keyring.set_keyring(backend)
    return backend


class DBusKeyring(KeyringBackend):
    """A keyring whose calls fail with errors outside keyring's own hierarchy."""

    priority = 1

    def get_password(self, service: str, username: str) -> Optional[str]:
        raise RuntimeError("org.freedesktop.DBus.Error.ServiceUnknown")

    def set_password(self, service: str, username: str, password: str) -> None:
        raise OSError("secret service socket closed")

    def delete_password(self, service: str, username: str) -> None:
        raise RuntimeError("org.freedesktop.DBus.Error.ServiceUnknown")


@pytest.fixture
def dbus_keyring() -> DBusKeyring:
    backend = DBusKeyring()
    keyring.set_keyring(backend)
    return backend
