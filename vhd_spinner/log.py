"""
Run log for provisioning.

Every message is timestamped, echoed to the terminal and appended to
the log file, so a run can be reviewed after the terminal is gone.
Both outputs are ``logging`` handlers sharing one formatter.
"""

import logging
from pathlib import Path

from rich.console import Console

from vhd_spinner.utils import console as default_console

LOGGER_NAME = "vhd_spinner.run"
LOG_FORMAT = "%(asctime)s - %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DRY_RUN_PREFIX = "[DRY-RUN] "

LEVEL_STYLES = {
    logging.WARNING: "yellow",
    logging.ERROR: "bold red",
}


class ConsoleHandler(logging.Handler):
    """Print formatted records on a rich console."""

    def __init__(self, console: Console):
        super().__init__()
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = getattr(record, "style", None) or LEVEL_STYLES.get(record.levelno)
            # Markup off: messages carry literal "[DRY-RUN]" tags and paths.
            # soft_wrap keeps long virt-install lines on one line.
            self.console.print(
                self.format(record), style=style, markup=False, highlight=False, soft_wrap=True
            )
        except Exception:
            self.handleError(record)


class RunLog:
    """Timestamped log that tees to a rich console and a file."""

    def __init__(self, path: Path | None, console: Console | None = None):
        self.path = path
        self.console = console or default_console
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.close()

        formatter = logging.Formatter(LOG_FORMAT, datefmt=TIMESTAMP_FORMAT)
        handlers: list[logging.Handler] = [ConsoleHandler(self.console)]
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(path, encoding="utf-8", delay=True))
        for handler in handlers:
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def close(self) -> None:
        """Detach and close this run's handlers."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(f"ERROR: {message}")

    def would(self, message: str) -> None:
        """Log an action that simulate mode skipped."""
        self.logger.info(f"{DRY_RUN_PREFIX}{message}", extra={"style": "cyan"})
