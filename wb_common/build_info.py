"""Build provenance of the code under benchmark.

Values come from ``WB_COMMIT_*`` environment variables when set (CI usually
knows them), otherwise from the git checkout in the working directory.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from wb_common.errors import ConfigurationError


def _git(args: list[str], cwd: Path | None, timeout: float = 5.0) -> str | None:
    """Run a git command, returning stdout or None on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    output = result.stdout.strip()
    return output or None


@dataclass(frozen=True)
class BuildInfo:
    commit_sha1: str | None = None
    commit_msg: str | None = None
    commit_date: str | None = None
    branch: str | None = None
    describe: str | None = None
    tag: str | None = None

    def commit_summary(self) -> str:
        """First line of the commit message; required to create an invocation."""
        if not self.commit_msg:
            raise ConfigurationError("missing commit message")
        return self.commit_msg.split("\n", 1)[0]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def collect_build_info(cwd: Path | None = None) -> BuildInfo:
    env = os.environ
    return BuildInfo(
        commit_sha1=env.get("WB_COMMIT_SHA1") or _git(["rev-parse", "HEAD"], cwd),
        commit_msg=env.get("WB_COMMIT_MESSAGE") or _git(["log", "-1", "--format=%B"], cwd),
        commit_date=env.get("WB_COMMIT_DATE")
        or _git(["log", "-1", "--format=%cI"], cwd),
        branch=env.get("WB_COMMIT_BRANCH")
        or _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd),
        describe=env.get("WB_COMMIT_DESCRIBE")
        or _git(["describe", "--tags", "--always"], cwd),
        tag=env.get("WB_COMMIT_TAG")
        or _git(["describe", "--tags", "--exact-match"], cwd),
    )
