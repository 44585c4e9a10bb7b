#!/usr/bin/env python3
"""Post-install hook that provisions the depgraph analyzer binary.

Set ``DEPGRAPH_SKIP_DOWNLOAD`` to skip the hook entirely, for example when
the binary is shipped by a system package.
"""
from __future__ import annotations

import os
import subprocess
import sys


def run(cmd: list[str]) -> str:
    proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    if proc.returncode != 0:
        if proc.stderr:
            sys.stderr.write(proc.stderr)
        sys.exit(proc.returncode)
    return proc.stdout.strip()


def main() -> None:
    if os.environ.get("DEPGRAPH_SKIP_DOWNLOAD"):
        return

    args = [sys.executable, "-m", "depgraph", "install"]
    if "--force" in sys.argv[1:]:
        args.append("--force")
    path = run(args)
    print(f"depgraph analyzer available at {path}")


if __name__ == "__main__":
    main()
