"""
Work unit and validator adapters.

A work unit performs one attempt, locally or in a daemon container; a
validator turns its output into a pass/fail verdict.
"""

import logging
import subprocess
import time
from collections.abc import Callable, Sequence
from typing import Any

from agentledger.domain.interfaces import (
    ContainerDaemonInterface,
    ValidatorInterface,
    WorkUnitInterface,
)
from agentledger.domain.models import ValidationResult, WorkOutput

logger = logging.getLogger(__name__)


class CommandWorkUnit(WorkUnitInterface):
    """
    Runs a local command in a subprocess.

    ``parameters["args"]`` (a list of strings) is appended to the base
    command. A missing executable or a timeout is reported as a failed
    output rather than raised.
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: str | None = None,
        timeout: float = 300.0,
    ):
        """
        Args:
            command: Executable and fixed arguments, e.g. ["ruff", "check"]
            cwd: Working directory (default: current)
            timeout: Maximum time in seconds to wait for the command
        """
        if not command:
            raise ValueError("command must not be empty")
        self._command = list(command)
        self._cwd = cwd
        self.timeout = timeout

    def perform(self, action: str, parameters: dict[str, Any]) -> WorkOutput:
        argv = self._command + [str(a) for a in parameters.get("args", [])]
        logger.debug("Running %s for %r", argv, action)
        try:
            completed = subprocess.run(
                argv,
                cwd=self._cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            return WorkOutput(
                output="",
                artifacts={"command": argv},
                errors=(f"Command not found: {argv[0]}",),
            )
        except subprocess.TimeoutExpired:
            return WorkOutput(
                output="",
                artifacts={"command": argv},
                errors=(f"Timeout: command exceeded {self.timeout}s",),
            )

        stderr = completed.stderr.strip()
        errors = (stderr,) if completed.returncode and stderr else ()
        return WorkOutput(
            output=completed.stdout,
            artifacts={"command": argv, "stderr": completed.stderr},
            exit_code=completed.returncode,
            errors=errors,
        )


class StaticWorkUnit(WorkUnitInterface):
    """Returns predefined outputs in sequence. For tests and dry runs."""

    def __init__(self, outputs: Sequence[WorkOutput | str]):
        """
        Args:
            outputs: Outputs to return in order; strings become exit code 0
        """
        self._outputs = [
            o if isinstance(o, WorkOutput) else WorkOutput(output=o, exit_code=0)
            for o in outputs
        ]
        self._call_count = 0

    def perform(self, action: str, parameters: dict[str, Any]) -> WorkOutput:
        if self._call_count >= len(self._outputs):
            raise RuntimeError("StaticWorkUnit exhausted outputs")
        output = self._outputs[self._call_count]
        self._call_count += 1
        return output

    @property
    def call_count(self) -> int:
        return self._call_count


class ContainerWorkUnit(WorkUnitInterface):
    """
    Runs the attempt as a task in a daemon-managed container.

    Spawns a container for ``parameters["repo"]`` with the action as its
    task, then polls until the container leaves ``running``.
    """

    TERMINAL_STATUSES = frozenset({"completed", "failed", "killed"})

    def __init__(
        self,
        daemon: ContainerDaemonInterface,
        poll_interval: float = 5.0,
        max_polls: int = 720,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            daemon: Container daemon client
            poll_interval: Seconds between status checks
            max_polls: Status checks before giving up and killing the container
            sleep: Sleep function (injectable for tests)
        """
        self._daemon = daemon
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._sleep = sleep

    def perform(self, action: str, parameters: dict[str, Any]) -> WorkOutput:
        repo = parameters.get("repo")
        if not repo:
            raise ValueError("ContainerWorkUnit requires a 'repo' parameter")

        spawned = self._daemon.spawn(
            repo,
            parameters.get("task", action),
            branch=parameters.get("branch"),
            timeout=parameters.get("timeout"),
        )
        container_id = spawned.get("container_id") or spawned["id"]
        logger.info("Spawned container %s for %s", container_id, repo)

        container = spawned
        polls = 0
        while container.get("status") not in self.TERMINAL_STATUSES:
            if polls >= self._max_polls:
                self._daemon.kill(container_id)
                return WorkOutput(
                    output="",
                    artifacts={"container_id": container_id},
                    errors=(f"Container {container_id} did not finish in time",),
                )
            self._sleep(self._poll_interval)
            container = self._daemon.get(container_id)
            polls += 1

        errors = (container["error"],) if container.get("error") else ()
        return WorkOutput(
            output=container.get("output") or "",
            artifacts={"container_id": container_id, "status": container.get("status")},
            exit_code=container.get("exit_code"),
            errors=errors,
        )


class ExitCodeValidator(ValidatorInterface):
    """Passes when the work reported the expected exit code and no errors."""

    def __init__(self, name: str = "self", expected_exit_code: int = 0):
        self._name = name
        self._expected = expected_exit_code

    @property
    def name(self) -> str:
        return self._name

    def validate(self, output: WorkOutput) -> ValidationResult:
        criteria = (f"exit_code == {self._expected}", "no errors reported")
        errors: list[str] = list(output.errors)
        if output.exit_code is None:
            errors.append("No exit code reported")
        elif output.exit_code != self._expected:
            errors.append(f"Exit code {output.exit_code}, expected {self._expected}")
        return ValidationResult(passed=not errors, criteria=criteria, errors=tuple(errors))
