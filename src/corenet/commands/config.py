"""Config commands -- view the client configuration the CLI would use."""

from __future__ import annotations

import typer

from corenet.output import get_output

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the resolved client configuration.

    Merges defaults, the user config file, ``CORENET_*`` environment
    variables and ``--config`` the same way ``corenet get`` does, then prints
    the config directory followed by every :class:`~corenet.models.ClientConfig`
    field.

    Example::

        corenet config show
        CORENET_READ_TIMEOUT=5 corenet --json config show
    """
    from corenet.config import get_config_dir, load_client_config
    from corenet.exceptions import CorenetError

    output = get_output()
    try:
        config = load_client_config((ctx.obj or {}).get("config_file"))
    except CorenetError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    output.info(f"Config directory: {get_config_dir()}")
    output.format_response(config.model_dump(mode="json"))
