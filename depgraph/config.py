"""Configuration loader for :mod:`depgraph`."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping
import importlib
import importlib.util
import os
import pathlib
from types import ModuleType

tomllib: ModuleType
if importlib.util.find_spec("tomllib") is not None:  # pragma: no cover - depends on runtime Python version
    tomllib = importlib.import_module("tomllib")
else:  # pragma: no cover - exercised on Python < 3.11
    tomllib = importlib.import_module("tomli")

CONFIG_NAME = ".depgraph.toml"
DEFAULT_VERSION = "0.3.0"
DEFAULT_BASE_URL = "https://github.com/abihf/depgraph/releases/download"
DEFAULT_LINE_LIMIT = 16 * 1024 * 1024


@dataclass
class AnalyzerConfig:
    """How the analyzer process is located and run."""

    executable: pathlib.Path | None = None
    version: str = DEFAULT_VERSION
    parallel: int | None = None
    line_limit: int = DEFAULT_LINE_LIMIT
    terminate_timeout: float = 2.0

    def child_env(self) -> dict[str, str]:
        """Extra environment passed to the analyzer process."""

        if self.parallel is None:
            return {}
        return {"DEPGRAPH_PARALLEL": str(self.parallel)}


@dataclass
class InstallConfig:
    """Where and how the analyzer binary is provisioned."""

    dir: pathlib.Path = field(default_factory=lambda: _default_install_dir())
    base_url: str = DEFAULT_BASE_URL
    skip_download: bool = False
    source_dir: pathlib.Path | None = None


@dataclass
class Config:
    """Complete configuration tree."""

    root: pathlib.Path
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    install: InstallConfig = field(default_factory=InstallConfig)


def load_config(start: pathlib.Path | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Load ``.depgraph.toml`` from *start* or its parents.

    Missing files yield the defaults. Environment variables
    (``DEPGRAPH_EXECUTABLE``, ``DEPGRAPH_PARALLEL``, ``DEPGRAPH_SKIP_DOWNLOAD``
    and ``DEPGRAPH_INSTALL_DIR``) override values read from the file.
    """

    if start is None:
        start = pathlib.Path.cwd()
    if environ is None:
        environ = os.environ
    cfg_path = _find_config(start)
    root = cfg_path.parent if cfg_path else start
    config = Config(root=root)

    data: dict[str, Any] = {}
    if cfg_path:
        with cfg_path.open("rb") as fh:
            data = tomllib.load(fh)

    analyzer_data = data.get("analyzer", {})
    defaults = config.analyzer
    config.analyzer = AnalyzerConfig(
        executable=_as_path(root, analyzer_data.get("executable")),
        version=str(analyzer_data.get("version", defaults.version)),
        parallel=_as_int(analyzer_data.get("parallel")),
        line_limit=int(analyzer_data.get("line_limit", defaults.line_limit)),
        terminate_timeout=float(analyzer_data.get("terminate_timeout", defaults.terminate_timeout)),
    )

    install_data = data.get("install", {})
    config.install = InstallConfig(
        dir=_as_path(root, install_data.get("dir")) or config.install.dir,
        base_url=str(install_data.get("base_url", config.install.base_url)).rstrip("/"),
        skip_download=bool(install_data.get("skip_download", False)),
        source_dir=_as_path(root, install_data.get("source_dir")),
    )

    _apply_env(config, environ)
    return config


def _apply_env(config: Config, environ: Mapping[str, str]) -> None:
    if environ.get("DEPGRAPH_EXECUTABLE"):
        config.analyzer.executable = pathlib.Path(environ["DEPGRAPH_EXECUTABLE"]).resolve()
    if environ.get("DEPGRAPH_PARALLEL"):
        config.analyzer.parallel = int(environ["DEPGRAPH_PARALLEL"])
    if environ.get("DEPGRAPH_INSTALL_DIR"):
        config.install.dir = pathlib.Path(environ["DEPGRAPH_INSTALL_DIR"]).resolve()
    if environ.get("DEPGRAPH_SKIP_DOWNLOAD"):
        config.install.skip_download = True


def _find_config(start: pathlib.Path) -> pathlib.Path | None:
    """Return the path to ``.depgraph.toml`` searching upwards from ``start``."""

    for directory in [start, *start.parents]:
        candidate = directory / CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _default_install_dir() -> pathlib.Path:
    cache = os.environ.get("XDG_CACHE_HOME")
    base = pathlib.Path(cache) if cache else pathlib.Path.home() / ".cache"
    return base / "depgraph"


def _as_path(root: pathlib.Path, value: Any) -> pathlib.Path | None:
    if not value:
        return None
    path = pathlib.Path(str(value)).expanduser()
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)
