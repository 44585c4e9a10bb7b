"""Exceptions raised by the analyzer driver."""
from __future__ import annotations


class DepgraphError(RuntimeError):
    """Base class for fatal driver errors."""


class SpawnError(DepgraphError):
    """The analyzer executable could not be started."""

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"Can not start analyzer {executable}: {reason}")
        self.executable = executable
        self.reason = reason


class ProtocolError(DepgraphError):
    """An output line did not follow the ``[file, outcome]`` line format."""

    def __init__(self, line: bytes | str, reason: str) -> None:
        preview = line if isinstance(line, str) else line.decode("utf-8", "replace")
        if len(preview) > 120:
            preview = preview[:117] + "..."
        super().__init__(f"Malformed analyzer output ({reason}): {preview!r}")
        self.line = line
        self.reason = reason


class WriteError(DepgraphError):
    """The analyzer's input channel broke before every file was sent."""

    def __init__(self, sent: int, cause: BaseException) -> None:
        super().__init__(f"Analyzer input closed after {sent} file(s): {cause}")
        self.sent = sent


class ExitError(DepgraphError):
    """The analyzer terminated with a non-zero exit status."""

    def __init__(self, returncode: int) -> None:
        super().__init__(f"Process error with code {returncode}")
        self.returncode = returncode


class ResolveError(DepgraphError):
    """No usable analyzer executable could be located or provisioned."""
