"""Shared fixtures for depgraph tests."""
import stat
import sys
import textwrap
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent))


@pytest.fixture
def make_analyzer(tmp_path):
    """Write an executable Python script that stands in for the analyzer."""

    counter = iter(range(1000))

    def _make(body: str) -> Path:
        script = tmp_path / f"fake-depgraph-{next(counter)}"
        header = f"#!{sys.executable}\nimport json, signal, sys, time\n"
        script.write_text(header + textwrap.dedent(body), encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


ECHO = """
for line in sys.stdin:
    name = line.rstrip("\\n")
    sys.stdout.write(json.dumps([name, [{"k": 1, "n": name + "-dep", "l": 1, "c": 0}]]) + "\\n")
    sys.stdout.flush()
"""


@pytest.fixture
def echo_analyzer(make_analyzer):
    return make_analyzer(ECHO)
