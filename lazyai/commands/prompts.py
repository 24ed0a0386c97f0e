"""Prompt generator commands (code / pr)."""

from __future__ import annotations

import subprocess
from typing import List, Optional, TextIO

from lazyai.domain.exceptions import CommandError
from lazyai.prompts import build_code_prompt, build_pr_prompt


def run_code(stdin: TextIO, stdout: TextIO) -> None:
    """Read a code block from stdin and print the feature-implementation prompt."""

    stdout.write(build_code_prompt(stdin.read()))
    stdout.flush()


def collect_diff(base: Optional[str] = None) -> str:
    cmd: List[str] = ["git", "diff"]
    if base:
        cmd.append(base)
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise CommandError(code="GIT_NOT_AVAILABLE", message=f"failed to run {' '.join(cmd)}: {exc}")
    if proc.returncode != 0:
        raise CommandError(
            code="GIT_DIFF_FAILED",
            message=f"{' '.join(cmd)} failed with exit code {proc.returncode}: {proc.stderr.strip()}",
        )
    return proc.stdout


def run_pr(stdout: TextIO, base: Optional[str] = None) -> None:
    """Print the PR-description prompt for the current git diff."""

    stdout.write(build_pr_prompt(collect_diff(base)))
    stdout.flush()
