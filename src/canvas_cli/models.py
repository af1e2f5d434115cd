"""Canonical Pydantic models shared across all canvas-cli modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`Instance`, :class:`Settings`, :class:`OutputConfig` and
    :class:`GlobalConfig`.

**Credential model** -- persisted by the credential store:
    :class:`Credential`.

**Runtime models** -- built per process or per call and never persisted:
    :class:`InvocationOptions`, :class:`ClientConfig` and
    :class:`RequestSpec`.

All models use Pydantic v2. Runtime models are frozen so that a value built
by one layer cannot be mutated by another.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


# --- Configuration ---


class Instance(BaseModel):
    """A configured Canvas deployment.

    Example::

        Instance(name="school", url="https://school.instructure.com")
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Short identifier used on the command line")
    url: str = Field(description="Base URL of the deployment, without /api/v1")

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class Settings(BaseModel):
    """Request tuning shared by every instance."""

    requests_per_second: float = Field(
        default=5.0, description="Sustained request rate; 0 or less disables limiting"
    )
    timeout: float = Field(default=30.0, description="Per-request timeout in seconds")
    max_attempts: int = Field(default=4, ge=1, description="Attempts per request, including the first")
    per_page: int = Field(default=100, ge=1, description="Page size for collection requests")


class CacheConfig(BaseModel):
    """GET response cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=False, description="Cache successful GET responses")
    ttl_seconds: int = Field(default=900, ge=1, description="Cache TTL in seconds")


class OutputConfig(BaseModel):
    """Output format preferences."""

    format: str = Field(default="auto", description="auto, json, plain or rich")


class GlobalConfig(BaseModel):
    """Top-level configuration file (``config.json``).

    Attributes:
        default_instance: Instance used when ``--instance`` is not given.
        instances: Configured deployments keyed by name.
        settings: Request tuning.
        output: Output preferences.
        cache: GET response cache.
    """

    default_instance: Optional[str] = None
    instances: dict[str, Instance] = Field(default_factory=dict)
    settings: Settings = Field(default_factory=Settings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Credentials ---


class Credential(BaseModel):
    """An access token for one instance.

    Secrets are :class:`~pydantic.SecretStr` so that ``repr``, ``str`` and
    default dumps never reveal them. Use :meth:`to_record` to obtain the
    plaintext mapping that a storage backend persists.
    """

    instance: str
    access_token: SecretStr
    refresh_token: Optional[SecretStr] = None
    expires_at: Optional[datetime] = None

    @property
    def token(self) -> str:
        """The plaintext access token."""
        return self.access_token.get_secret_value()

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` when the credential has a past expiry time.

        Naive expiry times are treated as UTC.
        """
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires

    def to_record(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible mapping with secrets revealed."""
        return {
            "instance": self.instance,
            "access_token": self.token,
            "refresh_token": (
                self.refresh_token.get_secret_value() if self.refresh_token else None
            ),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


# --- Runtime ---


class InvocationOptions(BaseModel):
    """Global CLI flags for one invocation.

    Built once by the root Typer callback and passed explicitly to every
    command through ``ctx.obj``.
    """

    model_config = ConfigDict(frozen=True)

    instance: Optional[str] = None
    as_user_id: int = 0
    dry_run: bool = False
    show_token: bool = False
    force: bool = False
    verbose: bool = False
    limit: int = 0
    timeout: Optional[float] = None
    no_cache: bool = False


class ClientConfig(BaseModel):
    """Everything :class:`~canvas_cli.client.APIClient` needs for one process run."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    token: SecretStr
    requests_per_second: float = 5.0
    as_user_id: int = 0
    timeout: float = 30.0
    max_attempts: int = 4
    user_agent: str = "canvas-cli"
    max_results: int = 0
    per_page: int = 100
    cache_ttl: int = 0  # seconds; 0 disables the response cache
    dry_run: bool = False
    show_token: bool = False

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


ParamsInput = Union[Mapping[str, Any], Iterable[tuple[str, Any]], None]


class RequestSpec(BaseModel):
    """One logical API call.

    ``params`` is an ordered sequence of ``(key, value)`` pairs so that
    Canvas array parameters (``include[]=a&include[]=b``) survive. A mapping
    is accepted for convenience; list values in a mapping expand into
    repeated pairs.

    Example::

        RequestSpec(method="GET", path="/api/v1/courses",
                    params=[("include[]", "term"), ("include[]", "teachers")])
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str
    params: tuple[tuple[str, str], ...] = ()
    json_body: Optional[Any] = None
    headers: tuple[tuple[str, str], ...] = ()

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("params", mode="before")
    @classmethod
    def _normalise_params(cls, value: ParamsInput) -> tuple[tuple[str, str], ...]:
        if value is None:
            return ()
        pairs: list[tuple[str, str]] = []
        items = value.items() if isinstance(value, Mapping) else value
        for key, item in items:
            if isinstance(item, (list, tuple)):
                pairs.extend((str(key), _param_str(v)) for v in item)
            elif item is not None:
                pairs.append((str(key), _param_str(item)))
        return tuple(pairs)

    @field_validator("headers", mode="before")
    @classmethod
    def _normalise_headers(cls, value: Any) -> tuple[tuple[str, str], ...]:
        if value is None:
            return ()
        items = value.items() if isinstance(value, Mapping) else value
        return tuple((str(k), str(v)) for k, v in items)


def _param_str(value: Any) -> str:
    """Render a query value the way Canvas expects (lower-case booleans)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
