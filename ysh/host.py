"""The external-command capability.

The evaluator only knows the `CommandInvoker` protocol. `SubprocessInvoker`
is the host implementation used by the CLI; tests supply fakes.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

# exit status shells report for a command that could not be found
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    status: int
    output: str = ""


class CommandInvoker(Protocol):
    def invoke(
        self, name: str, args: Sequence[str], env: Optional[Mapping[str, str]] = None
    ) -> CommandResult:
        """Run `name` with `args`; `env` holds variables added to the inherited environment."""
        ...


class SubprocessInvoker:
    """Run commands with `subprocess.run`, capturing stdout as text."""

    def __init__(self, cwd: str | None = None, timeout: float | None = None):
        self.cwd = cwd
        self.timeout = timeout

    def invoke(
        self, name: str, args: Sequence[str], env: Optional[Mapping[str, str]] = None
    ) -> CommandResult:
        argv = [name, *args]
        logger.debug("exec %s env=%s", argv, env)
        try:
            proc = subprocess.run(
                argv,
                cwd=self.cwd,
                env={**os.environ, **env} if env else None,
                stdout=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            return CommandResult(COMMAND_NOT_FOUND, "")
        except PermissionError:
            # found but not executable
            return CommandResult(126, "")
        logger.debug("exit %s -> %d", name, proc.returncode)
        return CommandResult(proc.returncode, proc.stdout or "")
