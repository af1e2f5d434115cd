"""canvas-cli -- a command-line client for the Canvas LMS REST API.

The heart of the package is a resilient asynchronous API client: every call
is authenticated, rate-limited, retried with jittered exponential backoff,
classified into typed errors, and (for collections) paginated lazily by
following the server's ``Link`` headers. Access tokens come from a
credential store that prefers the operating system keyring and degrades to
owner-only files.

Typical workflow::

    canvas auth login --instance school --url https://school.instructure.com
    canvas api GET /api/v1/courses --paginate
    canvas --as-user 42 api GET /api/v1/users/self

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    client: The resilient API client and its collaborators.
    auth: Credential storage.
"""

__version__ = "0.4.0"
