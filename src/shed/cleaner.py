"""Cleanup commands: size estimates and cancellable execution."""

import logging
import os
import subprocess
import threading
from typing import Callable, Optional

from shed.categories import CLEANUP_DEFINITIONS, CleanupDefinition, expand_path
from shed.models import CleanupAction, CleanupActionsData
from shed.pool import bounded_map
from shed.probe import du_size, run

log = logging.getLogger(__name__)


def estimate_size(definition: CleanupDefinition) -> int:
    """Bytes a cleanup is expected to free, 0 when unknown."""
    if definition.size_path:
        return du_size(expand_path(definition.size_path))
    if definition.size_path_command:
        command, *args = definition.size_path_command
        target = run(command, args).strip()
        return du_size(target) if target else 0
    return 0


def collect_cleanup_actions(
    definitions: tuple[CleanupDefinition, ...] = CLEANUP_DEFINITIONS,
) -> CleanupActionsData:
    """Build the list of available cleanup actions with size estimates."""
    sizes = bounded_map(estimate_size, definitions, max_workers=4, default=0)
    actions = [
        CleanupAction(
            id=d.id,
            label=d.label,
            description=d.description,
            command=d.command,
            args=list(d.args),
            warning=d.warning,
            size_bytes=size,
        )
        for d, size in zip(definitions, sizes)
    ]
    return CleanupActionsData(actions=actions)


class CleanupProcess:
    """A running cleanup command whose output is streamed to a callback."""

    def __init__(self, process: subprocess.Popen, on_output: Callable[[str], None]):
        self._process = process
        self._on_output = on_output
        self._reader = threading.Thread(target=self._pump, daemon=True)
        self._reader.start()

    def _pump(self) -> None:
        for line in self._process.stdout or ():
            self._on_output(line)

    def kill(self) -> None:
        """Terminate the command if it is still running."""
        if self._process.poll() is None:
            try:
                self._process.kill()
            except OSError as e:
                log.debug("Could not kill cleanup process: %s", e)

    def wait(self, timeout: Optional[float] = None) -> int:
        """Wait for the command to finish and return its exit code."""
        code = self._process.wait(timeout=timeout)
        self._reader.join(timeout=1)
        return code

    @property
    def running(self) -> bool:
        return self._process.poll() is None


def run_cleanup_action(action: CleanupAction, on_output: Callable[[str], None]) -> CleanupProcess:
    """
    Start a cleanup command.

    stdout and stderr are merged and passed to on_output line by line.

    Raises:
        OSError: If the command cannot be started
    """
    log.info("Running %s %s", action.command, " ".join(action.args))
    process = subprocess.Popen(
        [action.command, *action.args],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        env={**os.environ, "LC_ALL": "C"},
    )
    return CleanupProcess(process, on_output)
