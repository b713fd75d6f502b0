"""Built-in CLI commands for xmcnbi.

Each module defines a Typer app or command function that is registered
on the root application in :mod:`xmcnbi.app`:

- :mod:`~xmcnbi.commands.query` -- ``query`` and ``token``.
- :mod:`~xmcnbi.commands.profile` -- ``profile`` sub-group.
- :mod:`~xmcnbi.commands.options` -- connection flag handling shared by
  the commands above.
"""
