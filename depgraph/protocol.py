"""Wire format exchanged with the ``depgraph`` analyzer process.

Each output line is a JSON array ``[file, outcome]`` where ``outcome`` is
either an error message or a list of dependency objects::

    ["a.js", [{"k": 1, "n": "module_a", "l": 1, "c": 0}]]
    ["b.js", "can not open file b.js"]
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

import orjson

from .errors import ProtocolError

DYNAMIC_FLAG = 8


class DependencyKind(IntEnum):
    REQUIRE = 0
    IMPORT = 1
    EXPORT = 2
    IMPORT_TYPE = 5
    EXPORT_TYPE = 6


@dataclass(frozen=True)
class Dependency:
    """One import, require or re-export found in a file."""

    kind: int
    name: str
    line: int
    column: int
    dynamic: Optional[bool] = None
    exports: Tuple[str, ...] = ()

    @property
    def is_dynamic(self) -> bool:
        return bool(self.dynamic) or bool(self.kind & DYNAMIC_FLAG)

    @property
    def base_kind(self) -> Union[DependencyKind, int]:
        kind = self.kind & ~DYNAMIC_FLAG
        try:
            return DependencyKind(kind)
        except ValueError:
            return kind

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"k": self.kind, "n": self.name}
        if self.dynamic is not None:
            data["d"] = self.dynamic
        data["l"] = self.line
        data["c"] = self.column
        if self.exports:
            data["e"] = list(self.exports)
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Dependency":
        if not isinstance(data, Mapping):
            raise ValueError("dependency is not an object")
        for key in ("k", "l", "c"):
            if not _is_int(data.get(key)):
                raise ValueError(f"dependency field {key!r} is not an integer")
        if not isinstance(data.get("n"), str):
            raise ValueError("dependency field 'n' is not a string")
        dynamic = data.get("d")
        if dynamic is not None and not isinstance(dynamic, bool):
            raise ValueError("dependency field 'd' is not a boolean")
        exports = data.get("e", [])
        if not isinstance(exports, list) or not all(isinstance(e, str) for e in exports):
            raise ValueError("dependency field 'e' is not a list of strings")
        return Dependency(
            kind=data["k"],
            name=data["n"],
            line=data["l"],
            column=data["c"],
            dynamic=dynamic,
            exports=tuple(exports),
        )

    def pretty(self) -> str:
        kind = self.base_kind
        label = kind.name.lower() if isinstance(kind, DependencyKind) else str(kind)
        if self.is_dynamic:
            label += " (dynamic)"
        return f"{self.line}:{self.column} {label} {self.name}"


AnalysisOutcome = Union[str, List[Dependency]]


class Item(NamedTuple):
    """Result for a single analyzed file."""

    file: str
    outcome: AnalysisOutcome

    @property
    def ok(self) -> bool:
        return not isinstance(self.outcome, str)

    @property
    def error(self) -> Optional[str]:
        return self.outcome if isinstance(self.outcome, str) else None

    @property
    def dependencies(self) -> List[Dependency]:
        return [] if isinstance(self.outcome, str) else self.outcome


def encode_outcome(outcome: AnalysisOutcome) -> Union[str, List[Dict[str, Any]]]:
    if isinstance(outcome, str):
        return outcome
    return [dep.to_dict() for dep in outcome]


def decode_outcome(value: Any) -> AnalysisOutcome:
    """Decode the second element of an output line."""

    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return [Dependency.from_dict(item) for item in value]
    raise ValueError("outcome is neither an error string nor a dependency list")


def encode_item(item: Tuple[str, AnalysisOutcome]) -> bytes:
    """Serialize *item* as one output line, without the trailing newline."""

    file, outcome = item
    return orjson.dumps([file, encode_outcome(outcome)])


def decode_item(line: Union[bytes, str]) -> Item:
    """Parse one analyzer output line into an :class:`Item`."""

    try:
        payload = orjson.loads(line)
    except orjson.JSONDecodeError as exc:
        raise ProtocolError(line, f"invalid JSON: {exc}") from exc
    if not isinstance(payload, list) or len(payload) != 2:
        raise ProtocolError(line, "expected a two element array")
    file, outcome = payload
    if not isinstance(file, str):
        raise ProtocolError(line, "file name is not a string")
    try:
        return Item(file, decode_outcome(outcome))
    except ValueError as exc:
        raise ProtocolError(line, str(exc)) from exc


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
