"""Built-in CLI sub-commands for canvas-cli.

* :mod:`~canvas_cli.commands.auth` -- log in and out of Canvas instances.
* :mod:`~canvas_cli.commands.config` -- view and modify global settings.
* :mod:`~canvas_cli.commands.api` -- raw requests to any endpoint.
* :mod:`~canvas_cli.commands.enrollments` -- list and look up enrollments.

Each module exports a :class:`typer.Typer` sub-application, except
:mod:`~canvas_cli.commands.api`, which exports a plain callback registered
directly on the root app.
"""
