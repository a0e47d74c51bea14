#!/usr/bin/env python3
"""
KUBEKIO GIT RUNNER
------------------
Thin wrapper over the `git` executable for the operations the package
fetch/update workflow needs against a local repository.

Author: KubeKio Team
Date: 2026-10-19
"""

import logging
import subprocess
from dataclasses import dataclass

from kubekio.core.errors import KioError

logger = logging.getLogger("kubekio.git")


class GitError(KioError):
    """A git command exited non-zero or could not be started."""


@dataclass
class GitRunner:
    repo_dir: str
    user_name: str = "kubekio"
    user_email: str = "kubekio@localhost"

    def run(self, *args: str) -> str:
        """Runs git in repo_dir and returns its stripped stdout."""
        cmd = ["git", *args]
        logger.debug(f"Running {' '.join(cmd)} in {self.repo_dir}")
        try:
            proc = subprocess.run(cmd, cwd=self.repo_dir, capture_output=True,
                                  text=True, check=False)
        except OSError as e:
            raise GitError(f"unable to run git: {e}") from e
        if proc.returncode != 0:
            raise GitError(f"git {' '.join(args)} failed ({proc.returncode}): "
                           f"{proc.stderr.strip()}")
        return proc.stdout.strip()

    def init(self) -> None:
        self.run("init")

    def commit(self, message: str) -> str:
        """Stages every change, commits it and returns the new revision."""
        self.run("add", "--all")
        self.run("-c", f"user.name={self.user_name}",
                 "-c", f"user.email={self.user_email}",
                 "commit", "--allow-empty", "-m", message)
        return self.current_revision()

    def checkout(self, branch: str, create: bool = False) -> None:
        if create:
            self.run("checkout", "-b", branch)
        else:
            self.run("checkout", branch)

    def tag(self, name: str) -> None:
        self.run("tag", name)

    def current_revision(self) -> str:
        return self.run("rev-parse", "--verify", "HEAD")
