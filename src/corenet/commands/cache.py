"""Cache commands -- inspect and clear the on-disk response cache."""

from __future__ import annotations

import typer

from corenet.output import get_output

cache_app = typer.Typer(no_args_is_help=True)


def _open_cache(ctx: typer.Context):
    from corenet.cache import ResponseCache
    from corenet.config import load_client_config
    from corenet.exceptions import CorenetError

    try:
        config = load_client_config((ctx.obj or {}).get("config_file"))
    except CorenetError as exc:
        get_output().error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    if not config.cache_enabled:
        get_output().warning("The response cache is disabled (cache_max_bytes=0)")
        raise typer.Exit()
    return ResponseCache(config.cache_directory, config.cache_max_bytes)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show the cache directory, entry count and on-disk volume.

    Example::

        corenet cache stats
        corenet --json cache stats
    """
    cache = _open_cache(ctx)
    try:
        stats = cache.stats()
    finally:
        cache.close()
    rows = [
        ["directory", str(stats["directory"])],
        ["entries", str(stats["size"])],
        ["volume", f"{stats['volume']} bytes"],
        ["max_bytes", str(stats["max_bytes"])],
    ]
    get_output().print_table(["key", "value"], rows, title="Response cache")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every stored response.

    Example::

        corenet cache clear
    """
    cache = _open_cache(ctx)
    try:
        removed = cache.clear()
    finally:
        cache.close()
    get_output().success(f"Removed {removed} cached response(s) from {cache.directory}")
