import os
import sys
import logging
from loguru import logger

class InterceptHandler(logging.Handler):
    """Bridge stdlib logging -> Loguru, preserving level and caller site."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def console_filter(record):
    """Only allow messages explicitly marked for console output."""
    return record["extra"].get("console", False)


def _add_console_sink(level):
    # stderr so user messages never interleave with the full-screen graph
    logger.add(
        sys.stderr,
        level=level,
        filter=console_filter,
        colorize=True,
        format="<level>{message}</level>"
    )


def setup_console_logging(console_level: str = "INFO"):
    """
    Console-only logging for the window before settings are validated.

    No log directory is known yet, so nothing goes to a file. setup_logging()
    replaces this configuration once the settings are in.

    Returns:
        console_logger: Bound logger for user-facing messages (console only)

    Usage:
        console = setup_console_logging()
        console.error("pingg: invalid arguments")  # Console
    """
    # Remove default handler
    logger.remove()
    _add_console_sink(console_level)
    return logger.bind(console=True)


def setup_logging(log_dir: str = "logs", console_level: str = "INFO"):
    """
    Configure Loguru with dual-sink logging:
    1. File sink: captures ALL logs at DEBUG level
    2. Console sink: shows only explicit console.info/success/warning/error calls

    The console sink writes to stderr; nothing is sent to it while the
    graph is up.

    Returns:
        tuple: (debug_logger, console_logger)
            - debug_logger: For internal/debug messages (goes to file only)
            - console_logger: For user-facing messages (goes to both file + console)

    Usage:
        logger, console = setup_logging()
        logger.debug("Internal detail")  # File only
        console.info("User message")     # File + Console
    """
    os.makedirs(log_dir, exist_ok=True)

    # Remove default handler
    logger.remove()

    # Intercept stdlib logging (asyncio, prompt_toolkit)
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.DEBUG, force=True)

    # Set levels for noisy libraries
    for name in ("asyncio", "prompt_toolkit"):
        logging.getLogger(name).setLevel(logging.WARNING)

    # 1) FILE SINK: Everything at DEBUG level
    logger.add(
        os.path.join(log_dir, "pingg_debug.log"),
        rotation="10 MB",
        retention="7 days",
        level="DEBUG",
        enqueue=True,
        backtrace=True,
        diagnose=False,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {thread.name} | {name}:{function}:{line} - {message}"
    )

    # 2) CONSOLE SINK: Only messages tagged with console=True
    _add_console_sink(console_level)

    # Create two bound loggers
    debug_logger = logger  # Goes to file only (no console=True tag)
    console_logger = logger.bind(console=True)  # Goes to file + console

    return debug_logger, console_logger
