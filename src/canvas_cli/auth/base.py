"""Abstract base class for credential storage backends.

A backend persists one :class:`~canvas_cli.models.Credential` per instance
name. Concrete backends live in :mod:`canvas_cli.auth.keyring_backend` and
:mod:`canvas_cli.auth.file_backend`; :mod:`canvas_cli.auth.credential_store`
picks one of them at startup.

Error contract shared by every backend:

* :meth:`CredentialBackend.load` raises
  :class:`~canvas_cli.exceptions.CredentialNotFoundError` when nothing is
  stored and :class:`~canvas_cli.exceptions.CredentialBackendError` when the
  backend fails or the stored record cannot be decoded.
* :meth:`CredentialBackend.delete` of a missing record is a no-op.
* Nothing a backend logs or raises contains the secret itself.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod

from pydantic import ValidationError as PydanticValidationError

from canvas_cli.exceptions import CredentialBackendError
from canvas_cli.models import Credential


class CredentialBackend(ABC):
    """One place credentials can live."""

    #: Short identifier shown in ``canvas auth status`` and debug output.
    name: str = "backend"

    @abstractmethod
    def probe(self) -> None:
        """Check that the backend is usable right now.

        Raises:
            CredentialBackendError: With a human-readable reason when it is not.
        """
        ...

    @abstractmethod
    def save(self, instance: str, credential: Credential) -> None: ...

    @abstractmethod
    def load(self, instance: str) -> Credential: ...

    @abstractmethod
    def delete(self, instance: str) -> None: ...


def encode_record(credential: Credential) -> str:
    return json.dumps(credential.to_record(), indent=2) + "\n"


def decode_record(text: str, source: str) -> Credential:
    """Parse a stored record; *source* names where it came from for error messages."""
    try:
        return Credential.model_validate(json.loads(text))
    except (json.JSONDecodeError, PydanticValidationError) as exc:
        # Never echo the payload: it may hold a partial token.
        raise CredentialBackendError(
            f"Stored credential in {source} is corrupted ({type(exc).__name__})"
        ) from None
