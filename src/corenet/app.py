"""Typer application and CLI entry point for corenet.

The ``corenet`` command is a diagnostic front end to the library: it builds
a client from the resolved :class:`~corenet.models.ClientConfig` and lets
you fire requests, check reachability, and inspect or clear the response
cache.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~corenet.exceptions.CorenetError` instances end
the process with their ``exit_code``.
"""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from corenet import __version__
from corenet.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE

app = typer.Typer(
    name="corenet",
    help="Send HTTP requests through the corenet client pipeline.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"corenet {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Route library logs to stderr through Rich; ``--verbose`` lowers the level to DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(show_time=False, show_path=False, markup=False)],
        force=True,
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Read client settings from this JSON file."
    ),
) -> None:
    """Initialise output and logging, and stash shared options in ``ctx.obj``."""
    from corenet.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        from corenet.output import get_output

        get_output().error(f"Invalid header {raw!r}, expected 'Name: value'")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    return name.strip(), value.strip()


@app.command("get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute http(s) URL."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra request header as 'Name: value'. Repeatable."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Fetch from the server instead of using the cache."
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Log the full HTTP exchange to stderr."
    ),
    include: bool = typer.Option(
        False, "--include", "-i", help="Print response headers to stderr."
    ),
) -> None:
    """Send a GET request and print the response body.

    Example::

        corenet get https://httpbin.org/json
        corenet get https://api.example.com/me -H "Authorization: Bearer abc" --debug
    """
    from corenet.cache.control import DEFAULT_CACHE_CONTROL, FORCE_NETWORK
    from corenet.client import build_client
    from corenet.client.response import format_api_response
    from corenet.config import load_client_config
    from corenet.exceptions import CorenetError
    from corenet.interceptors import HTTP_LOGGER_NAME
    from corenet.output import get_output
    from corenet.request import get_request

    if debug:
        logging.getLogger(HTTP_LOGGER_NAME).setLevel(logging.INFO)

    headers = [_parse_header(item) for item in header or []]
    try:
        descriptor = get_request(
            url,
            headers=headers,
            cache_control=FORCE_NETWORK if no_cache else DEFAULT_CACHE_CONTROL,
        )
        config = load_client_config(ctx.obj.get("config_file"))
        with build_client(config, debug=debug or None) as client:
            response = client.execute(descriptor, raise_for_status=False)
    except CorenetError as exc:
        get_output().error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    format_api_response(response, show_headers=include)
    if not response.is_success:
        from corenet.exit_codes import EXIT_HTTP_STATUS

        raise typer.Exit(code=EXIT_HTTP_STATUS)


@app.command("reachable")
def reachable_command() -> None:
    """Report whether the active network claims internet access.

    Exits 0 when reachable and 5 otherwise.
    """
    from corenet.exit_codes import EXIT_NETWORK_UNAVAILABLE
    from corenet.network import SocketNetworkMonitor, is_network_reachable
    from corenet.output import get_output

    monitor = SocketNetworkMonitor()
    network = monitor.active_network()
    output = get_output()
    if is_network_reachable(monitor):
        output.success(f"Network reachable via {network.name if network else 'unknown'}")
        return
    output.warning("No network with internet access")
    raise typer.Exit(code=EXIT_NETWORK_UNAVAILABLE)


# ------------------------------------------------------------------ #
# Sub-command groups
# ------------------------------------------------------------------ #

from corenet.commands.cache import cache_app  # noqa: E402
from corenet.commands.config import config_app  # noqa: E402

app.add_typer(cache_app, name="cache", help="Inspect or clear the response cache.")
app.add_typer(config_app, name="config", help="Show the resolved client configuration.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``corenet`` console script.

    :class:`~corenet.exceptions.CorenetError` exits with its ``exit_code``;
    anything else is logged with its traceback and exits with
    :data:`~corenet.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from corenet.exceptions import CorenetError
        from corenet.output import get_output

        if isinstance(exc, CorenetError):
            get_output().error(str(exc))
            sys.exit(exc.exit_code)
        logging.getLogger(__name__).exception("Unexpected error")
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
