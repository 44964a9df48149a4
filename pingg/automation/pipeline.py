"""
Wiring: ping subprocess -> latency extractor -> handoff -> rolling window -> display.

Two worker threads:
- reader: scans probe output, extracts latencies, sends them one at a time
- updater: receives each sample, updates the window, pushes a snapshot to the display

The display runs on the main thread and owns the quit keys. One CancelToken
stops all three.
"""

import threading
from typing import Callable, Iterable

from loguru import logger

from pingg.automation.handoff import CancelToken, Handoff
from pingg.automation.latency import try_parse_latency
from pingg.automation.probe import PingProcess, build_ping_command
from pingg.automation.settings_models import MonitorSettings
from pingg.automation.stats_window import RollingWindow, WindowSnapshot

READER_JOIN_TIMEOUT = 2.0


class MonitorError(RuntimeError):
    """A worker thread crashed and the session was torn down."""


def read_samples(lines: Iterable[str], handoff: Handoff, token: CancelToken) -> int:
    """
    Reader task body.

    Lines without a latency are skipped silently.

    Returns:
        Number of samples handed off
    """
    sent = 0
    for line in lines:
        if token.cancelled:
            break
        value = try_parse_latency(line)
        if value is None:
            continue
        if not handoff.send(value):
            break
        sent += 1
    logger.debug(f"Reader finished after {sent} sample(s)")
    return sent


def consume_samples(
    handoff: Handoff,
    window: RollingWindow,
    on_update: Callable[[WindowSnapshot], None],
    token: CancelToken,
) -> int:
    """
    Update task body: fold each received sample into the window and publish it.

    Returns:
        Number of samples consumed
    """
    consumed = 0
    while not token.cancelled:
        value = handoff.receive()
        if value is None:
            break
        window.add(value)
        consumed += 1
        on_update(window.snapshot())
    logger.debug(f"Updater finished after {consumed} sample(s)")
    return consumed


def prime_window(window: RollingWindow, seed_value: float) -> None:
    """Put two placeholder samples in so the first frame has something to draw."""
    for _ in range(2):
        if window.compat:
            # Absorbed by the warm-up skip
            window.add(seed_value)
        else:
            window.seed(seed_value)


class LatencyMonitor:
    """Runs one live monitoring session for a single target."""

    def __init__(self, settings: MonitorSettings, display_factory, probe_factory=PingProcess):
        self.settings = settings
        self.display_factory = display_factory
        self.probe_factory = probe_factory
        self.token = CancelToken()
        self.window = RollingWindow(settings.history_size, compat=settings.compat_stats)
        self._failure: BaseException | None = None

    def run(self) -> int:
        """
        Block until the user quits.

        Returns:
            The probe's exit code

        Raises:
            EmptyWindowError: If the window is empty at first render
            ProbeError: If the probe cannot start or failed on its own
            DisplayError: If the terminal UI cannot be set up
            MonitorError: If the reader or updater thread crashed
        """
        s = self.settings
        prime_window(self.window, s.seed_value)
        first = self.window.snapshot()

        command = build_ping_command(s.target, binary=s.ping_binary)
        logger.info(f"Monitoring {s.target} (history={s.history_size}, compat_stats={s.compat_stats})")

        with self.probe_factory(command) as probe:
            self.token.add_callback(probe.terminate)
            handoff = Handoff(self.token)

            with self.display_factory(s.target, self.token) as display:
                display.update(first)

                reader = threading.Thread(
                    target=self._guarded, args=(read_samples, probe.lines(), handoff, self.token),
                    name="probe-reader", daemon=True,
                )
                updater = threading.Thread(
                    target=self._guarded, args=(consume_samples, handoff, self.window, display.update, self.token),
                    name="window-updater", daemon=True,
                )
                reader.start()
                updater.start()

                try:
                    display.run()
                finally:
                    self.token.cancel()
                    updater.join()

            reader.join(timeout=READER_JOIN_TIMEOUT)
            if reader.is_alive():
                logger.warning("Reader thread still blocked on probe output")

            if self._failure is not None:
                raise MonitorError(f"{type(self._failure).__name__}: {self._failure}") from self._failure

            code = probe.wait()

        logger.info(f"Monitoring of {s.target} stopped (probe exit code {code})")
        return code

    def _guarded(self, func, *args) -> None:
        """Thread entry: a crash in either worker ends the whole session."""
        try:
            func(*args)
        except Exception as e:
            logger.exception(f"{threading.current_thread().name} crashed: {e}")
            if self._failure is None:
                self._failure = e
            self.token.cancel()
