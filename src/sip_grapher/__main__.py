"""CLI entry point for sip-grapher.

Allows running the tool as a module:
    python -m sip_grapher
"""

import logging
import re
import sys
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from sip_grapher.config import Config, load_config
from sip_grapher.logfiles import discover_log_files
from sip_grapher.logging import get_logger, setup_logging
from sip_grapher.render import build_msc
from sip_grapher.scanner import CallIndex, InputUnavailableError, LogScanner, build_filter
from sip_grapher.selection import list_calls, parse_selection

logger = get_logger("cli")


def sanitize(value: str | None) -> str | None:
    """Keep only characters valid in a Call-ID or number search term."""
    if value is None:
        return None
    return re.sub(r"[^a-zA-Z0-9\-_]", "", value) or None


def format_mtime(path: Path) -> str:
    """Format a file modification time for display."""
    return datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")


def scan_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that scans a log."""
    func = click.argument("logfile", required=False, type=click.Path(path_type=Path))(func)
    func = click.option("--call-id", "-c", help="Select calls whose Call-ID matches this pattern")(func)
    func = click.option("--number", "-n", help="Select calls whose To/From contains this number")(func)
    func = click.option(
        "--ignore-xdid", is_flag=True, help="Do not use the X-DID header for the dialed number"
    )(func)
    func = click.option("--verbose", "-v", is_flag=True, help="Narrate skip/match decisions")(func)
    return func


def run_scan(
    config: Config,
    logfile: Path | None,
    call_id: str | None,
    number: str | None,
    ignore_xdid: bool,
    verbose: bool,
) -> CallIndex:
    """Resolve options against config, scan the log and return the index."""
    ignore_xdid = ignore_xdid or config.scan.ignore_alternate_did
    verbose = verbose or config.scan.verbose

    try:
        match_filter = build_filter(call_id=sanitize(call_id), number=sanitize(number))
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if logfile is None:
        candidates = discover_log_files(config.scan.logpath)
        if not candidates:
            click.echo(f"No log files found for {config.scan.logpath}", err=True)
            sys.exit(1)
        logfile = candidates[0]

    scanner = LogScanner(match_filter, ignore_alternate_did=ignore_xdid, verbose=verbose)
    try:
        return scanner.scan_file(logfile)
    except InputUnavailableError as e:
        click.echo(f"Error reading log: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config.yaml")
@click.option("--debug", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: bool) -> None:
    """Graph SIP call flows found in Asterisk logs."""
    config = load_config(config_path)
    setup_logging("sip_grapher", log_dir=config.log_dir, level=logging.DEBUG if debug else logging.INFO)
    ctx.obj = config


@cli.command()
@click.option("--logpath", type=click.Path(path_type=Path), help="Log file path pattern")
@click.pass_obj
def logs(config: Config, logpath: Path | None) -> None:
    """List candidate log files, newest first."""
    logpath = logpath or config.scan.logpath
    files = discover_log_files(logpath)
    if not files:
        click.echo(f"No log files found for {logpath}")
        return

    for position, path in enumerate(files):
        click.echo(f"{position}. [ {format_mtime(path)} ] {path}")


@cli.command()
@scan_options
@click.pass_obj
def calls(
    config: Config,
    logfile: Path | None,
    call_id: str | None,
    number: str | None,
    ignore_xdid: bool,
    verbose: bool,
) -> None:
    """List the calls found in a log."""
    index = run_scan(config, logfile, call_id, number, ignore_xdid, verbose)
    if not len(index):
        click.echo("No matching calls were found")
        return

    click.echo(f"Found {len(index)} calls:\n")
    for position, record in list_calls(index):
        click.echo(
            f"{position})\t{record.first_timestamp or '':<20} "
            f"TO: {record.callee_number or '':<16} "
            f"FROM: {record.caller_number or '':<16} "
            f"CALL ID: {record.call_id}"
        )


@cli.command()
@scan_options
@click.option("--select", "-s", "selection", help="Calls to graph by list position, e.g. '0,2'")
@click.option("--output-dir", "-o", type=click.Path(file_okay=False, path_type=Path), help="Write .msc files here")
@click.pass_obj
def graph(
    config: Config,
    logfile: Path | None,
    call_id: str | None,
    number: str | None,
    ignore_xdid: bool,
    verbose: bool,
    selection: str | None,
    output_dir: Path | None,
) -> None:
    """Build sequence diagrams for calls found in a log."""
    index = run_scan(config, logfile, call_id, number, ignore_xdid, verbose)
    if not len(index):
        click.echo("No matching calls were found")
        return

    selected = parse_selection(selection, index) if selection else index.call_ids()
    logger.info("Graphing calls: %s", ",".join(selected))

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)

    for selected_id in selected:
        msc = build_msc(
            index[selected_id],
            width=config.render.width,
            local_label=config.render.local_label,
            remote_label=config.render.remote_label,
        )
        if output_dir is None:
            click.echo(msc)
            click.echo()
            continue

        out_path = output_dir / f"{selected_id}.msc"
        out_path.write_text(msc + "\n", encoding="utf-8")
        click.echo(f"Wrote {out_path}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
