#!/usr/bin/env python3
"""
リリース前に必ず通すべき自動チェックをまとめて実行するスクリプト。

実行内容:
    1. ruff lint
    2. mypy type check
    3. pytest (unit + integration)

使い方:
    $ pip install -e ".[test,dev]"
    $ python scripts/checks/run_release_gate.py

全てのコマンドを実行した後、失敗したコマンドが1つでもあれば非ゼロコードで終了する。
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

COMMANDS = [
    [sys.executable, "-m", "ruff", "check", "src", "tests"],
    [sys.executable, "-m", "mypy", "src"],
    [sys.executable, "-m", "pytest"],
]


def run_command(command: list[str]) -> int:
    print(f"\n[INFO] Running: {' '.join(command[1:])}")
    process = subprocess.run(command, cwd=PROJECT_ROOT, check=False)
    if process.returncode != 0:
        print(f"[ERROR] Exit code {process.returncode}: {' '.join(command[1:])}", file=sys.stderr)
    return process.returncode


def main() -> int:
    failures = [command for command in COMMANDS if run_command(command) != 0]

    if failures:
        print("\n[SUMMARY] Release gate failed.", file=sys.stderr)
        for failed_command in failures:
            print(f"  - {' '.join(failed_command[1:])}", file=sys.stderr)
        return 1

    print("\n[SUMMARY] Release gate passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
