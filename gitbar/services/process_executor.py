"""Async process execution service"""

import asyncio
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import git

from gitbar.logging_config import get_logger

logger = get_logger(__name__)

LAUNCH_FAILURE_EXIT_CODE = -1

# Status queries must never take .git/index.lock away from the user's own git
GIT_ENVIRONMENT = {"GIT_OPTIONAL_LOCKS": "0", "GIT_TERMINAL_PROMPT": "0"}


@dataclass(frozen=True)
class CommandResult:
    """Result of a finished (or unlaunchable) command."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def lines(self) -> list[str]:
        """Non-empty stdout lines."""
        return [line for line in self.stdout.split("\n") if line.strip()]


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _trim_output(text: str) -> str:
    """Trim surrounding blank lines and trailing whitespace.

    Leading spaces on the first line are kept: in porcelain status output
    they are the empty index column.
    """
    return text.rstrip().lstrip("\r\n")


def resolve_git_executable() -> str:
    """Return the git binary GitPython has resolved (honours GIT_PYTHON_GIT_EXECUTABLE)."""
    return git.Git.GIT_PYTHON_GIT_EXECUTABLE or "git"


class ProcessExecutor:
    """Runs external commands and always hands back a CommandResult.

    Every call gets its own subprocess, so any number of calls may be in
    flight at once.
    """

    def __init__(self, git_executable: Optional[str] = None):
        self.git_executable = git_executable or resolve_git_executable()

    async def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        working_directory: Optional[str] = None,
        environment: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run a command and capture its trimmed output.

        Args:
            executable: Path or name of the program to run
            arguments: Arguments passed to the program
            working_directory: Directory to run in (inherits ours when None)
            environment: Variables merged over the current environment

        Returns:
            CommandResult; exit code -1 with a descriptive stderr when the
            process could not be started at all
        """
        env = None
        if environment:
            env = dict(os.environ)
            env.update(environment)

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_directory,
                env=env,
            )
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to launch {executable} {' '.join(arguments)}: {e}")
            return CommandResult(
                stdout="",
                stderr=f"Failed to launch process: {e}",
                exit_code=LAUNCH_FAILURE_EXIT_CODE,
            )

        stdout, stderr = await process.communicate()
        result = CommandResult(
            stdout=_trim_output(_decode(stdout)),
            stderr=_decode(stderr).strip(),
            exit_code=process.returncode if process.returncode is not None else LAUNCH_FAILURE_EXIT_CODE,
        )
        if not result.succeeded:
            logger.debug(
                f"{executable} {' '.join(arguments)} exited {result.exit_code}"
                f" in {working_directory}: {result.stderr}"
            )
        return result

    async def git(self, *arguments: str, cwd: str) -> CommandResult:
        """Run git with the given arguments inside a repository."""
        return await self.run(
            self.git_executable,
            arguments,
            working_directory=cwd,
            environment=GIT_ENVIRONMENT,
        )
