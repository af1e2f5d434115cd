"""Resource-level helpers built on :class:`~canvas_cli.client.APIClient`."""
