#!/usr/bin/env python3
"""
DIAGPACK COMMAND RUNNER
-----------------------
The only place that touches subprocess. Every platform client (kubectl,
docker, host tools) goes through CommandRunner so collectors never deal
with process plumbing, and tests can replay canned output by overriding
`capture`.

No timeout is enforced here: a hung external command stalls the run.

Author: DiagPack Team
Date: 2026-10-18
"""

import shutil
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

logger = logging.getLogger("diagpack.runner")


@dataclass
class CommandResult:
    args: Tuple[str, ...]
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> bytes:
        """Both streams, stdout first, as a shell `> file 2>&1` would leave them."""
        return self.stdout + self.stderr

    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


class CommandError(Exception):
    """An external command exited non-zero or could not be started."""

    def __init__(self, result: CommandResult, message: Optional[str] = None):
        self.result = result
        self.output = result.output
        command = " ".join(result.args)
        self.message = message or f"'{command}' exited with status {result.returncode}"
        super().__init__(self.message)


class CommandRunner:
    """Runs external commands and captures their output."""

    NOT_FOUND = 127

    def capture(self, args: Sequence[str]) -> CommandResult:
        args = tuple(args)
        logger.debug(f"Running: {' '.join(args)}")
        try:
            proc = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError:
            return CommandResult(args, self.NOT_FOUND, b"", f"{args[0]}: command not found\n".encode())
        except OSError as e:
            return CommandResult(args, self.NOT_FOUND, b"", f"{args[0]}: {e}\n".encode())
        return CommandResult(args, proc.returncode, proc.stdout, proc.stderr)

    def run(self, args: Sequence[str]) -> CommandResult:
        """Like capture, but raises CommandError on a non-zero exit."""
        result = self.capture(args)
        if not result.ok:
            raise CommandError(result)
        return result

    def succeeds(self, args: Sequence[str]) -> bool:
        return self.capture(args).ok

    def available(self, tool: str) -> bool:
        return shutil.which(tool) is not None


class PlatformClient:
    """Base for tool-specific clients: prefixes every call with the tool binary."""

    tool = ""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def _args(self, *args: str) -> Tuple[str, ...]:
        return (self.tool,) + tuple(args)

    def run(self, *args: str) -> CommandResult:
        return self.runner.run(self._args(*args))

    def succeeds(self, *args: str) -> bool:
        return self.runner.succeeds(self._args(*args))

    def lines(self, *args: str) -> list:
        """Runs a listing command and returns its non-empty output lines."""
        return [line.strip() for line in self.run(*args).text().splitlines() if line.strip()]
