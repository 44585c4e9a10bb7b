"""Command line interface for the depgraph driver."""
from __future__ import annotations

import asyncio
import concurrent.futures
import pathlib
import subprocess
import sys
import threading
from contextlib import aclosing
from typing import AsyncIterator, Sequence, TextIO

import click

from .config import load_config
from .driver import Analyzer
from .errors import DepgraphError
from .loggingx import logger
from .protocol import Item, encode_item
from .resolver import resolve_executable


@click.group()
def main() -> None:
    """depgraph driver entry point."""


@main.command(help="Analyze FILES (or file names read from stdin) and print their dependencies")
@click.argument("files", nargs=-1)
@click.option("--json-out", is_flag=True, default=False, help="Emit one JSON line per file")
@click.option(
    "--executable",
    type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path),
    default=None,
    help="Use this analyzer binary instead of the installed one",
)
@click.option("--parallel", type=int, default=None, help="Files the analyzer may process at once")
def analyze(files: Sequence[str], json_out: bool, executable: pathlib.Path | None, parallel: int | None) -> None:
    config = load_config()
    if parallel is not None:
        config.analyzer.parallel = parallel
    try:
        analyzer = Analyzer.from_config(config, executable=executable)
        source = list(files) if files else _stdin_names(sys.stdin)
        failed = asyncio.run(_run(analyzer, source, json_out))
    except DepgraphError as exc:
        raise click.ClickException(str(exc)) from exc
    if failed:
        logger.info("%d file(s) could not be analyzed", failed)


@main.command(help="Locate or download the analyzer binary and print its path")
@click.option("--force", is_flag=True, help="Replace an existing install")
def install(force: bool) -> None:
    config = load_config()
    try:
        path = resolve_executable(config, force=force)
    except DepgraphError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(str(path))


@main.command(help="Print the version reported by the analyzer binary")
def version() -> None:
    config = load_config()
    try:
        path = resolve_executable(config)
    except DepgraphError as exc:
        raise click.ClickException(str(exc)) from exc
    proc = subprocess.run([str(path), "--version"], stdout=subprocess.PIPE, text=True, check=False)
    click.echo(proc.stdout.strip())


async def _run(analyzer: Analyzer, files, json_out: bool) -> int:  # noqa: ANN001
    failed = 0
    async with aclosing(analyzer.analyze(files)) as items:
        async for item in items:
            if not item.ok:
                failed += 1
            _print_item(item, json_out)
    return failed


def _print_item(item: Item, json_out: bool) -> None:
    if json_out:
        click.echo(encode_item(item).decode())
    elif item.error is not None:
        click.echo(f"{item.file}: error: {item.error}", err=True)
    else:
        click.echo(item.file)
        for dep in item.dependencies:
            click.echo(f"  {dep.pretty()}")


async def _stdin_names(stream: TextIO) -> AsyncIterator[str]:
    """File names from *stdin*, read off the event loop so output keeps flowing.

    The reader is a daemon thread so a blocked ``readline`` never keeps the
    process alive once the analyzer has gone.
    """

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=1024)

    def pump() -> None:
        try:
            for line in stream:
                asyncio.run_coroutine_threadsafe(queue.put(line), loop).result()
            asyncio.run_coroutine_threadsafe(queue.put(None), loop).result()
        except (RuntimeError, concurrent.futures.CancelledError):
            # Event loop closed or shutting down.
            return

    threading.Thread(target=pump, name="depgraph-stdin", daemon=True).start()
    while True:
        line = await queue.get()
        if line is None:
            return
        name = line.strip()
        if name:
            yield name


if __name__ == "__main__":  # pragma: no cover
    main()
