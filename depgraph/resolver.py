"""Locating or provisioning the ``depgraph`` analyzer executable."""
from __future__ import annotations

import os
import pathlib
import platform
import re
import subprocess
from typing import Iterable, Mapping

import httpx

from .config import Config
from .errors import ResolveError
from .loggingx import logger

EXE_NAME = "depgraph"

ARTIFACTS = {
    ("linux", "x86_64"): "depgraph-x86_64-unknown-linux-gnu",
    ("darwin", "x86_64"): "depgraph-x86_64-apple-darwin",
    ("darwin", "arm64"): "depgraph-aarch64-apple-darwin",
}

_MACHINE_ALIASES = {"amd64": "x86_64", "x64": "x86_64", "aarch64": "arm64"}


def check_version(path: pathlib.Path, version: str) -> bool:
    """Return ``True`` when ``path --version`` prints exactly *version*."""

    try:
        proc = subprocess.run(
            [str(path), "--version"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("Version check of %s failed: %s", path, exc)
        return False
    found = proc.stdout.strip()
    if proc.returncode != 0 or found != version:
        logger.debug("%s reports version %r (exit %s), want %r", path, found, proc.returncode, version)
        return False
    return True


def artifact_name(system: str | None = None, machine: str | None = None) -> str:
    """Release asset name for the current (or given) platform."""

    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    machine = _MACHINE_ALIASES.get(machine, machine)
    try:
        return ARTIFACTS[(system, machine)]
    except KeyError:
        raise ResolveError(f"Can not find build for platform {system} arch {machine}") from None


def resolve_executable(config: Config, *, force: bool = False) -> pathlib.Path:
    """Return the absolute path of an analyzer matching ``config.analyzer.version``.

    Tries, in order: the configured executable, a previous install, a
    matching ``depgraph`` on ``PATH``, the release download and finally a
    source build. With *force* any previous install is replaced.
    """

    version = config.analyzer.version
    explicit = config.analyzer.executable
    if explicit is not None:
        if not check_version(explicit, version):
            raise ResolveError(f"{explicit} is not depgraph {version}")
        return explicit

    install_dir = config.install.dir
    target = install_dir / EXE_NAME
    if target.exists() or target.is_symlink():
        if not force and check_version(target, version):
            logger.debug("Using installed analyzer %s", target)
            return target
        target.unlink()

    install_dir.mkdir(parents=True, exist_ok=True)

    found = find_on_path(version)
    if found is not None:
        target.symlink_to(found)
        logger.info("Linked %s from PATH", found)
        return target

    errors: list[str] = []
    if not config.install.skip_download:
        url = f"{config.install.base_url}/v{version}/{artifact_name()}"
        try:
            download(url, target)
            return target
        except (httpx.HTTPError, OSError, ResolveError) as exc:
            logger.error("Download error: %s", exc)
            errors.append(f"download failed: {exc}")
            target.unlink(missing_ok=True)
    else:
        errors.append("download skipped")

    if config.install.source_dir is not None:
        logger.info("Trying to build from source")
        built = build_from_source(config.install.source_dir, version)
        target.symlink_to(built)
        return target

    raise ResolveError(f"No depgraph {version} available ({'; '.join(errors)})")


def find_on_path(version: str, environ: Mapping[str, str] | None = None) -> pathlib.Path | None:
    """Return the first ``depgraph`` on ``PATH`` reporting *version*."""

    if environ is None:
        environ = os.environ
    for directory in _path_entries(environ.get("PATH", "")):
        candidate = pathlib.Path(directory) / EXE_NAME
        if candidate.is_file() and check_version(candidate, version):
            return candidate.resolve()
    return None


def download(url: str, target: pathlib.Path, transport: httpx.BaseTransport | None = None) -> None:
    """Fetch *url* (following redirects) into *target* and mark it executable."""

    logger.info("Downloading %s", url)
    partial = target.with_name(target.name + ".part")
    try:
        with httpx.Client(follow_redirects=True, timeout=60.0, transport=transport) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                with partial.open("wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
        partial.chmod(0o755)
        partial.replace(target)
    finally:
        partial.unlink(missing_ok=True)


def build_from_source(source_dir: pathlib.Path, version: str) -> pathlib.Path:
    """Build the analyzer with ``cargo`` and return the built binary."""

    cargo_toml = source_dir / "Cargo.toml"
    if not cargo_toml.is_file():
        raise ResolveError(f"{cargo_toml} not found")
    text = cargo_toml.read_text(encoding="utf-8")
    text = re.sub(r'(?m)^version = .*$', f'version = "{version}"', text, count=1)
    cargo_toml.write_text(text, encoding="utf-8")
    try:
        subprocess.run(["cargo", "build", "--release"], cwd=source_dir, check=True)
    except FileNotFoundError as exc:
        raise ResolveError("cargo is not installed") from exc
    except subprocess.CalledProcessError as exc:
        raise ResolveError(f"cargo build exited with code {exc.returncode}") from exc
    built = (source_dir / "target" / "release" / EXE_NAME).resolve()
    if not built.is_file():
        raise ResolveError(f"cargo build did not produce {built}")
    return built


def _path_entries(path_var: str) -> Iterable[str]:
    for entry in path_var.split(os.pathsep):
        if entry:
            yield entry
