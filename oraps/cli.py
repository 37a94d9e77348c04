from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import oracledb
import typer

from oraps.monitor import CancelToken, MonitorLoop, cancel_on_signals
from oraps.sessions import connect_handler
from oraps.types import MonitorSettings
from oraps.ui import print_error, print_info, print_step, print_success

app = typer.Typer(add_completion=False)

_CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "-help", "--help"],
    "allow_extra_args": True,
    "ignore_unknown_options": True,
}


@contextmanager
def _open_output(path: str | None) -> Iterator[TextIO | None]:
    if path is None:
        yield None
        return

    try:
        output_file = open(path, "a", encoding="utf-8")
    except OSError as e:
        typer.echo(f"❌ Cannot open output file '{path}': {e}", err=True)
        raise typer.Exit(code=1)

    with output_file:
        yield output_file


@app.command(
    help="Show which OS processes back which Oracle sessions.",
    context_settings=_CONTEXT_SETTINGS,
)
def monitor(
    interval: int = typer.Option(
        5, "--interval", "-interval", "-i", min=1, help="Refresh interval in seconds."
    ),
    count: int | None = typer.Option(
        None,
        "--count",
        "-count",
        "-c",
        min=1,
        help="Number of refreshes before exiting (default: run until Ctrl+C).",
    ),
    top: int = typer.Option(
        15, "--top", "-top", "-n", min=1, help="Number of top CPU processes to show."
    ),
    output: str | None = typer.Option(
        None, "--output", "-output", "-o", help="Append each snapshot to this file."
    ),
    user: str | None = typer.Option(
        None,
        "--user",
        "-u",
        envvar="ORAPS_USER",
        help="Database user (default: OS authentication).",
    ),
    password: str | None = typer.Option(
        None,
        "--password",
        "-p",
        envvar="ORAPS_PASSWORD",
        show_default=False,
        hidden=True,
    ),
    dsn: str | None = typer.Option(
        None, "--dsn", "-d", envvar="ORAPS_DSN", help="Oracle connect string."
    ),
    sysdba: bool = typer.Option(
        True, "--sysdba/--no-sysdba", help="Connect with SYSDBA privileges."
    ),
    command_width: int = typer.Option(
        20, "--command-width", min=1, help="Characters of the command to show."
    ),
):
    settings = MonitorSettings(
        interval=interval,
        count=count,
        top=top,
        output=output,
        command_width=command_width,
    )

    print_step("Connecting to Oracle...")
    connection = connect_handler(user, password, dsn, sysdba)
    print_success("Connected")

    runs = 0
    try:
        with _open_output(settings.output) as output_file:
            if output_file is not None:
                print_info(f"Appending snapshots to {settings.output}")

            token = CancelToken()
            with cancel_on_signals(token):
                runs = MonitorLoop(settings, connection, token, output_file).run()
    finally:
        try:
            connection.close()
        except oracledb.Error as e:
            print_error(f"Failed to close the Oracle connection: {e}")

    print_success(f"Monitoring stopped after {runs} run(s).")


if __name__ == "__main__":
    app()
