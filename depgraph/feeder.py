"""Writing file names into the analyzer's stdin."""
from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Iterable, Protocol, Union

from .errors import WriteError
from .loggingx import logger

FileNames = Union[Iterable[str], AsyncIterable[str]]


class Sink(Protocol):
    """The subset of :class:`asyncio.StreamWriter` used by :func:`feed`."""

    def write(self, data: bytes) -> None:
        ...

    async def drain(self) -> None:
        ...

    def close(self) -> None:
        ...

    async def wait_closed(self) -> None:
        ...


class Feeder:
    """Sends every name in *files* to *sink*, one per line, then closes it.

    ``drain()`` after each write suspends the feeder while the sink's buffer
    is above its high-water mark, so memory stays bounded however long or
    slow *files* is. The sink is closed even if *files* raises, letting the
    analyzer finish the names it already received.

    ``awaiting_input`` is true while the feeder is parked on an async
    iterable rather than on the sink.
    """

    def __init__(self, files: FileNames, sink: Sink) -> None:
        self.files = files
        self.sink = sink
        self.sent = 0
        self.awaiting_input = False

    async def _names(self) -> AsyncIterator[str]:
        if not hasattr(self.files, "__aiter__"):
            for name in self.files:  # type: ignore[union-attr]
                yield name
            return
        names = self.files.__aiter__()  # type: ignore[union-attr]
        while True:
            self.awaiting_input = True
            try:
                name = await names.__anext__()
            except StopAsyncIteration:
                return
            finally:
                self.awaiting_input = False
            yield name

    async def run(self) -> int:
        sink = self.sink
        try:
            async for name in self._names():
                try:
                    sink.write(f"{name}\n".encode("utf-8"))
                    await sink.drain()
                except (BrokenPipeError, ConnectionResetError) as exc:
                    raise WriteError(self.sent, exc) from exc
                self.sent += 1
        except BaseException:
            sink.close()
            raise

        try:
            sink.close()
            await sink.wait_closed()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise WriteError(self.sent, exc) from exc
        logger.debug("Sent %d file(s) to analyzer", self.sent)
        return self.sent


async def feed(files: FileNames, sink: Sink) -> int:
    """Run a :class:`Feeder` and return the number of lines sent."""

    return await Feeder(files, sink).run()
