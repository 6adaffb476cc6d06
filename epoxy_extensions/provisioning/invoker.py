"""External program invocation."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog

from epoxy_extensions.provisioning.deadline import Deadline
from epoxy_extensions.provisioning.errors import CommandFailedError, ProvisioningTimeoutError

type CommandRunner = Callable[[Sequence[str], float], subprocess.CompletedProcess[str]]

logger = structlog.get_logger(__name__)


def run_local_command(
    command: Sequence[str],
    timeout_seconds: float,
) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(command),
        text=True,
        capture_output=True,
        check=False,
        timeout=timeout_seconds,
    )


class ExternalInvoker:
    """Runs programs from a fixed binary directory and returns their stdout."""

    def __init__(
        self,
        *,
        bin_dir: str,
        timeout_seconds: float = 30.0,
        command_runner: CommandRunner = run_local_command,
    ) -> None:
        self._bin_dir = Path(bin_dir)
        self._timeout_seconds = timeout_seconds
        self._command_runner = command_runner

    def program_path(self, program: str) -> str:
        return str(self._bin_dir / program)

    def invoke(self, program: str, args: Sequence[str], *, deadline: Deadline) -> str:
        command = [self.program_path(program), *args]
        rendered = shlex.join(command)
        timeout_seconds = deadline.remaining(operation=program, cap=self._timeout_seconds)

        try:
            completed = self._command_runner(command, timeout_seconds)
        except subprocess.TimeoutExpired as exc:
            raise ProvisioningTimeoutError(
                f"command timed out after {timeout_seconds:.1f}s: {rendered}"
            ) from exc
        except OSError as exc:
            raise CommandFailedError(f"command could not be started: {rendered}: {exc}") from exc

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise CommandFailedError(
                f"command exited with returncode={completed.returncode}: {rendered}"
                + (f"; stderr={stderr[:240]}" if stderr else ""),
                returncode=completed.returncode,
                stderr=stderr,
            )

        logger.debug("external_command_completed", command=rendered)
        return completed.stdout or ""
