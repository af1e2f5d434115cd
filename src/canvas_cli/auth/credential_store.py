"""Credential store: one backend chosen once from an ordered fallback chain.

At startup :func:`select_backend` tries each backend factory in order and
keeps the first one whose probe succeeds, recording why the others were
skipped. Every later ``save``/``load``/``delete`` goes to that backend
only; there is no per-call fallback, so a credential is always read from
where it was written.

Default chain: :class:`~canvas_cli.auth.keyring_backend.KeyringBackend`,
then :class:`~canvas_cli.auth.file_backend.FileBackend`.

Example::

    store = CredentialStore.create()
    store.save("school", Credential(instance="school", access_token="tok"))
    token = store.load("school").token
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from canvas_cli.auth.base import CredentialBackend
from canvas_cli.auth.file_backend import FileBackend
from canvas_cli.auth.keyring_backend import KeyringBackend
from canvas_cli.exceptions import CredentialBackendError, CredentialNotFoundError
from canvas_cli.models import Credential
from canvas_cli.output import debug

BackendFactory = Callable[[], CredentialBackend]

DEFAULT_BACKENDS: tuple[BackendFactory, ...] = (KeyringBackend, FileBackend)


@dataclass(frozen=True)
class BackendSelection:
    """Outcome of :func:`select_backend`.

    Attributes:
        backend: The backend every operation will use.
        skipped: ``(name, reason)`` for each backend tried before it.
    """

    backend: CredentialBackend
    skipped: tuple[tuple[str, str], ...] = ()


def select_backend(factories: Sequence[BackendFactory] = DEFAULT_BACKENDS) -> BackendSelection:
    """Return the first backend in *factories* that builds and probes cleanly.

    Raises:
        CredentialBackendError: If none is usable; the message lists every
            reason.
    """
    skipped: list[tuple[str, str]] = []
    for factory in factories:
        name = getattr(factory, "name", getattr(factory, "__name__", repr(factory)))
        try:
            backend = factory()
            name = backend.name
            backend.probe()
        except CredentialBackendError as exc:
            debug(f"Credential backend '{name}' unavailable: {exc}")
            skipped.append((name, str(exc)))
            continue
        return BackendSelection(backend=backend, skipped=tuple(skipped))

    reasons = "; ".join(f"{name}: {reason}" for name, reason in skipped) or "none configured"
    raise CredentialBackendError(f"No credential backend is available ({reasons})")


class CredentialStore:
    """Save, load and delete credentials through one selected backend."""

    def __init__(self, selection: BackendSelection) -> None:
        self._selection = selection

    @classmethod
    def create(cls, factories: Sequence[BackendFactory] = DEFAULT_BACKENDS) -> CredentialStore:
        return cls(select_backend(factories))

    @property
    def backend(self) -> CredentialBackend:
        return self._selection.backend

    @property
    def backend_name(self) -> str:
        return self._selection.backend.name

    @property
    def skipped(self) -> tuple[tuple[str, str], ...]:
        return self._selection.skipped

    def save(self, instance: str, credential: Credential) -> None:
        if credential.instance != instance:
            credential = credential.model_copy(update={"instance": instance})
        self.backend.save(instance, credential)

    def load(self, instance: str) -> Credential:
        """Load the credential for *instance*.

        Raises:
            CredentialNotFoundError: Nothing is stored for *instance*.
            CredentialBackendError: The backend failed or the record is corrupted.
        """
        return self.backend.load(instance)

    def delete(self, instance: str) -> None:
        """Remove the credential for *instance*; a missing record is not an error."""
        self.backend.delete(instance)

    def exists(self, instance: str) -> bool:
        try:
            self.load(instance)
        except CredentialNotFoundError:
            return False
        return True
