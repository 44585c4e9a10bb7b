"""Launching the analyzer and owning its pipes for one invocation."""
from __future__ import annotations

import asyncio
import enum
import os
from typing import Mapping, Optional

from .config import DEFAULT_LINE_LIMIT
from .errors import SpawnError
from .loggingx import logger


class SessionState(enum.Enum):
    STARTING = "starting"
    STREAMING = "streaming"
    DRAINING = "draining"
    TERMINATED = "terminated"


class ProcessSession:
    """A running analyzer together with its stdin sink and stdout source.

    A session belongs to a single :meth:`Analyzer.analyze` call and is never
    reused. stderr is inherited so diagnostics from the analyzer reach the
    user unparsed.
    """

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        assert proc.stdin is not None and proc.stdout is not None
        self._proc = proc
        self.stdin: asyncio.StreamWriter = proc.stdin
        self.stdout: asyncio.StreamReader = proc.stdout
        self.state = SessionState.STARTING
        self.succeeded: Optional[bool] = None

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    def transition(self, state: SessionState, succeeded: Optional[bool] = None) -> None:
        logger.debug("Analyzer pid=%s %s -> %s", self.pid, self.state.value, state.value)
        self.state = state
        if state is SessionState.TERMINATED:
            self.succeeded = succeeded

    async def wait(self) -> int:
        """Wait for the analyzer to exit and return its exit status."""

        return await self._proc.wait()

    async def terminate(self, timeout: float = 2.0) -> None:
        """Stop the analyzer if it is still running and reap it."""

        if not self.stdin.is_closing():
            self.stdin.close()
        if self._proc.returncode is None:
            logger.debug("Terminating analyzer pid=%s", self.pid)
            try:
                self._proc.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(self._proc.wait(), timeout)
            except asyncio.TimeoutError:
                logger.warning("Analyzer pid=%s ignored SIGTERM; killing", self.pid)
                try:
                    self._proc.kill()
                except ProcessLookupError:
                    pass
                await self._proc.wait()
        if self.state is not SessionState.TERMINATED:
            self.transition(SessionState.TERMINATED, succeeded=False)


async def launch(
    executable: str | os.PathLike[str],
    *,
    env: Optional[Mapping[str, str]] = None,
    line_limit: int = DEFAULT_LINE_LIMIT,
) -> ProcessSession:
    """Start *executable* with piped stdin/stdout and inherited stderr."""

    child_env = None
    if env:
        child_env = {**os.environ, **env}
    logger.debug("Starting analyzer %s", executable)
    try:
        proc = await asyncio.create_subprocess_exec(
            os.fspath(executable),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=None,
            env=child_env,
            limit=line_limit,
        )
    except OSError as exc:
        raise SpawnError(os.fspath(executable), exc.strerror or str(exc)) from exc
    session = ProcessSession(proc)
    logger.debug("Analyzer started pid=%s", session.pid)
    return session
