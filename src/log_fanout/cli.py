"""Click command group for running and inspecting the relay.

Contents
--------
* :func:`cli` - root group with ``--use-dotenv``, ``--traceback`` and ``--version``.
* :func:`info` - print the metadata banner.
* :func:`serve_command` - resolve settings and run the relay.
* :func:`main` - ``lib_cli_exit_tools`` entry point returning an exit code.
"""

from __future__ import annotations

import os
from typing import Sequence

import click
import lib_cli_exit_tools

from . import __init__conf__, config
from .runtime import build_relay, configure_logging, serve


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load environment variables from the nearest .env (default: ${config.DOTENV_ENV_VAR}).",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show the full Python traceback when a command fails.",
)
@click.option("--version", "-V", is_flag=True, help="Print the installed version and exit.")
@click.pass_context
def cli(ctx: click.Context, use_dotenv: bool | None, traceback: bool, version: bool) -> None:
    """Real-time log fan-out relay."""

    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    if version:
        click.echo(__init__conf__.version)
        ctx.exit(0)
    if config.should_use_dotenv(explicit=use_dotenv, env_value=os.getenv(config.DOTENV_ENV_VAR)):
        config.enable_dotenv()
    if ctx.invoked_subcommand is None:
        ctx.invoke(info)


@cli.command()
def info() -> None:
    """Print package metadata."""
    from . import summary_info

    click.echo(summary_info(), nl=False)


@cli.command("serve")
@click.option("--address", "--faddr", "address", default=None, help="HOST:PORT to listen on [default: localhost:9000].")
@click.option("--open/--no-open", "open_browser", default=None, help="Open the static home page in a browser.")
@click.option("--log/--no-log", "log_to_console", default=None, help="Log diagnostics to the local console.")
@click.option("--dir", "static_dir", default=None, help='Directory served under /static; "" disables static files.')
@click.option("--home", "home_page", default=None, help="Home page inside --dir opened by --open.")
@click.option("--level", "min_level", default=None, help="Minimum level to relay, 0-3 or debug/info/warn/error.")
@click.option("--echo/--no-echo", "echo", default=None, help="Also print every relayed record on this console.")
@click.option("--queue-maxsize", type=int, default=None, help="Inbound queue capacity, 0 for unbounded.")
@click.option("--queue-full-policy", type=click.Choice(["block", "drop"]), default=None, help="Overflow policy of the inbound queue.")
def serve_command(**options: object) -> None:
    """Run the relay until interrupted."""

    try:
        settings = config.build_settings(**options)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    configure_logging(settings.log_to_console)
    serve(settings, relay=build_relay(settings))


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Run the command group through ``lib_cli_exit_tools`` and return its exit code.

    ``--traceback`` mutates the shared ``lib_cli_exit_tools.config``; the
    previous preferences are restored afterwards unless ``restore_traceback``
    is ``False``.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main"]
