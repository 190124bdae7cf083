"""Built-in CLI sub-command groups for corenet.

* :mod:`~corenet.commands.cache` -- inspect and clear the response cache.
* :mod:`~corenet.commands.config` -- show the resolved client configuration.

Each module exports a :class:`typer.Typer` sub-application that
:mod:`corenet.app` attaches to the root app.
"""
