"""Streaming driver for the ``depgraph`` analyzer process."""
from __future__ import annotations

import asyncio
import os
import pathlib
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable, List, Mapping, Optional

from .config import DEFAULT_LINE_LIMIT, Config, load_config
from .errors import ExitError
from .feeder import Feeder, FileNames
from .loggingx import logger
from .process import ProcessSession, SessionState, launch
from .protocol import Item
from .reader import read_items

Launcher = Callable[..., Awaitable[ProcessSession]]


class Analyzer:
    """Run the analyzer over a stream of file names.

    *executable* is an already resolved path; use :meth:`from_config` to go
    through :func:`depgraph.resolver.resolve_executable`. Every call to
    :meth:`analyze` starts its own process.
    """

    def __init__(
        self,
        executable: str | os.PathLike[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        line_limit: int = DEFAULT_LINE_LIMIT,
        terminate_timeout: float = 2.0,
        launcher: Launcher = launch,
    ) -> None:
        self.executable = pathlib.Path(executable)
        self.env = dict(env or {})
        self.line_limit = line_limit
        self.terminate_timeout = terminate_timeout
        self._launcher = launcher

    @classmethod
    def from_config(
        cls,
        config: Config | None = None,
        *,
        executable: str | os.PathLike[str] | None = None,
    ) -> "Analyzer":
        """Build an analyzer from *config*, resolving the binary unless *executable* is given."""

        from .resolver import resolve_executable

        if config is None:
            config = load_config()
        if executable is None:
            path = resolve_executable(config)
        else:
            path = pathlib.Path(executable).resolve()
        return cls(
            path,
            env=config.analyzer.child_env(),
            line_limit=config.analyzer.line_limit,
            terminate_timeout=config.analyzer.terminate_timeout,
        )

    async def analyze(self, files: FileNames) -> AsyncIterator[Item]:
        """Yield an :class:`Item` for every line the analyzer prints.

        Items arrive in output order while *files* is still being written.
        Once the output ends the writer is awaited and the exit status is
        checked, so a failed run raises :class:`ExitError` after the items it
        produced. If the caller stops iterating early, the analyzer is
        terminated.
        """

        session = await self._launcher(self.executable, env=self.env, line_limit=self.line_limit)
        session.transition(SessionState.STREAMING)
        writer = Feeder(files, session.stdin)
        feeder = asyncio.create_task(writer.run())
        finished = False
        try:
            async for item in read_items(session.stdout):
                yield item
            session.transition(SessionState.DRAINING)
            returncode = await self._drain(session, feeder, writer)
            if returncode != 0:
                session.transition(SessionState.TERMINATED, succeeded=False)
                raise ExitError(returncode)
            session.transition(SessionState.TERMINATED, succeeded=True)
            finished = True
        finally:
            if not finished:
                await self._abandon(session, feeder)

    async def _drain(self, session: ProcessSession, feeder: asyncio.Task[int], writer: Feeder) -> int:
        """Wait for the writer and the process after the output has ended.

        A writer failure is raised before the exit status. A writer still
        waiting on the caller's input once the process is gone is cancelled,
        since nothing more can be delivered.
        """

        exited = asyncio.create_task(session.wait())
        try:
            await asyncio.wait({feeder, exited}, return_when=asyncio.FIRST_COMPLETED)
            if not feeder.done() and writer.awaiting_input:
                logger.debug("Analyzer exited after %d file(s); dropping pending input", writer.sent)
                feeder.cancel()
                await asyncio.wait([feeder])
            else:
                await feeder
            return await exited
        finally:
            if not exited.done():
                exited.cancel()

    async def _abandon(self, session: ProcessSession, feeder: asyncio.Task[int]) -> None:
        if not feeder.done():
            feeder.cancel()
        await asyncio.wait([feeder])
        if not feeder.cancelled() and feeder.exception() is not None:
            logger.debug("Input writer stopped with %r", feeder.exception())
        await session.terminate(self.terminate_timeout)


def analyze(
    files: FileNames,
    *,
    executable: str | os.PathLike[str] | None = None,
    config: Config | None = None,
) -> AsyncIterator[Item]:
    """Analyze *files* with the configured analyzer; see :meth:`Analyzer.analyze`."""

    return Analyzer.from_config(config, executable=executable).analyze(files)


def analyze_all(
    files: FileNames,
    *,
    executable: str | os.PathLike[str] | None = None,
    config: Config | None = None,
) -> List[Item]:
    """Blocking helper returning every item once the analyzer has finished."""

    async def collect() -> List[Item]:
        async with aclosing(analyze(files, executable=executable, config=config)) as items:
            return [item async for item in items]

    return asyncio.run(collect())
