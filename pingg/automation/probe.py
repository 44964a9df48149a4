"""
Continuous ping subprocess.

Owns the lifecycle of the platform ping utility and exposes its stdout as
a stream of text lines.
"""

import platform
import subprocess
import threading
from collections import deque
from typing import Iterator

from loguru import logger

_STDERR_TAIL = 20  # lines of stderr kept for the failure message


class ProbeError(RuntimeError):
    """The ping process could not be started or failed on its own."""


def build_ping_command(target: str, system: str | None = None, binary: str = "ping") -> list[str]:
    """
    Build an argv that pings `target` until stopped.

    Windows ping stops after 4 echoes unless given `-t`; the Unix
    utilities run forever by default.
    """
    system = system or platform.system()
    if system.lower() == "windows":
        return [binary, "-t", target]
    return [binary, target]


class PingProcess:
    """Context-managed ping subprocess."""

    def __init__(self, command: list[str]):
        self.command = command
        self._proc: subprocess.Popen | None = None
        self._stopped_by_us = False
        self._lock = threading.Lock()
        self._stderr_tail: deque[str] = deque(maxlen=_STDERR_TAIL)
        self._stderr_thread: threading.Thread | None = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.terminate()
        self.close()

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    def start(self) -> None:
        logger.debug(f"Starting probe: {' '.join(self.command)}")
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            logger.error(f"Failed to start probe {self.command[0]!r}: {e}")
            raise ProbeError(f"failed to start {self.command[0]!r}: {e}") from e

        if self._proc.stdout is None:
            self.terminate()
            raise ProbeError("probe stdout is not available")

        # Keep stderr flowing so a chatty probe never blocks on a full pipe
        self._stderr_thread = threading.Thread(
            target=self._drain_stderr, name="probe-stderr", daemon=True
        )
        self._stderr_thread.start()
        logger.debug(f"Probe started with pid {self._proc.pid}")

    def lines(self) -> Iterator[str]:
        """Yield stdout lines until the process closes its output."""
        if self._proc is None:
            raise ProbeError("probe not started")

        for line in self._proc.stdout:
            yield line.rstrip("\r\n")
        logger.debug("Probe output stream closed")

    def terminate(self) -> None:
        """Stop the process. Safe to call repeatedly and from any thread."""
        with self._lock:
            if self._proc is None or self._stopped_by_us:
                return
            if self._proc.poll() is not None:
                logger.debug(f"Probe already exited with code {self._proc.returncode}")
                return
            self._stopped_by_us = True

        logger.debug(f"Terminating probe pid {self._proc.pid}")
        try:
            self._proc.terminate()
        except OSError as e:
            logger.warning(f"Error terminating probe: {e}")

    def wait(self, timeout: float | None = 5.0) -> int:
        """
        Reap the process.

        Returns:
            The exit code

        Raises:
            ProbeError: If the process exited with an error we did not cause
        """
        if self._proc is None:
            raise ProbeError("probe not started")

        try:
            code = self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Probe pid {self._proc.pid} ignored terminate, killing")
            self._stopped_by_us = True
            self._proc.kill()
            code = self._proc.wait()

        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=1.0)
        logger.debug(f"Probe exited with code {code}")

        if code != 0 and not self._stopped_by_us:
            detail = f": {' | '.join(self._stderr_tail)}" if self._stderr_tail else ""
            raise ProbeError(f"{self.command[0]} exited with status {code}{detail}")
        return code

    def close(self) -> None:
        """Release the stdout pipe once nobody reads it any more."""
        if self._proc is None or self._proc.stdout is None or self._proc.stdout.closed:
            return
        try:
            self._proc.stdout.close()
        except (OSError, RuntimeError) as e:
            logger.warning(f"Error closing probe stdout: {e}")

    def _drain_stderr(self) -> None:
        for line in self._proc.stderr:
            line = line.strip()
            if line:
                logger.debug(f"probe stderr: {line}")
                self._stderr_tail.append(line)
        self._proc.stderr.close()
