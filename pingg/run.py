import argparse
import signal

from pydantic import ValidationError

from pingg.lib.logging_setup import setup_console_logging, setup_logging
from pingg.automation.pipeline import LatencyMonitor, MonitorError
from pingg.automation.probe import ProbeError
from pingg.automation.settings_models import load_settings
from pingg.automation.stats_window import EmptyWindowError
from pingg.display.live_graph import DisplayError, LiveGraphSession


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pingg",
        description="Live terminal graph of ping latency. Press q or Ctrl-C to quit.",
    )
    p.add_argument("target", help="host name or address to ping")
    p.add_argument("--history", type=int, default=None, help="samples kept in the graph, at least 3 unless --strict-stats (default: 100, env PINGG_HISTORY_SIZE)")
    p.add_argument("--strict-stats", action="store_true", help="count every sample in Avg/Max/Min instead of the classic warm-up behaviour")
    p.add_argument("--ping-binary", default=None, help="ping executable (default: ping, env PINGG_PING_BINARY)")
    p.add_argument("--log-dir", default=None, help="directory for pingg_debug.log (default: logs, env PINGG_LOG_DIR)")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    console = setup_console_logging()

    try:
        settings = load_settings(
            args.target,
            history_size=args.history,
            compat_stats=False if args.strict_stats else None,
            ping_binary=args.ping_binary,
            log_dir=args.log_dir,
        )
    except (ValidationError, ValueError) as e:
        console.error(f"pingg: invalid arguments:\n{e}")
        return 2

    logger, console = setup_logging(settings.log_dir)
    logger.debug(f"Script started with args: {vars(args)}")
    logger.debug(f"Settings: {settings.model_dump()}")

    monitor = LatencyMonitor(settings, display_factory=LiveGraphSession)

    # Route SIGTERM through the normal teardown so the terminal is restored
    signal.signal(signal.SIGTERM, lambda signum, frame: monitor.token.cancel())

    try:
        monitor.run()
    except EmptyWindowError as e:
        logger.error(f"Render requested with an empty window: {e}")
        console.error(f"pingg: {e}")
        return 1
    except ProbeError as e:
        logger.error(f"Probe failed: {e}")
        console.error(f"pingg: {e}")
        return 1
    except DisplayError as e:
        logger.error(f"Display failed: {e}")
        console.error(f"pingg: {e}")
        return 1
    except MonitorError as e:
        logger.error(f"Worker crashed: {e}")
        console.error(f"pingg: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {type(e).__name__}: {e}")
        console.error(f"pingg: unexpected error: {e}")
        return 1

    logger.debug("Script completed successfully")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
