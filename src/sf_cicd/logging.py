"""Logging configuration for SF-CICD."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "sf_cicd"


class PipelineLogger:
    """Run-scoped logging for pipeline steps.

    Module loggers live under the ``sf_cicd`` namespace and propagate here,
    so retry attempts and ``sf`` commands end up in the run log file.
    """

    def __init__(
        self,
        logs_dir: Path,
        run_id: Optional[str] = None,
        verbose: bool = False,
    ):
        self.logs_dir = logs_dir
        self.logs_dir.mkdir(parents=True, exist_ok=True)

        self.run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.verbose = verbose

        self.log_file = self.logs_dir / f"run_{self.run_id}.log"

        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG)

        # Drop handlers from a previous run in this process
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        # File handler - always log everything to file
        file_handler = logging.FileHandler(self.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        self.logger.addHandler(file_handler)

        # Console handler - only if verbose
        if verbose:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(logging.Formatter("%(levelname)-8s | %(message)s"))
            self.logger.addHandler(console_handler)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def section(self, title: str) -> None:
        """Log a section header."""
        self.logger.info("=" * 60)
        self.logger.info(title)
        self.logger.info("=" * 60)

    def file_review(self, file_path: str, score: object, counts: dict[str, int]) -> None:
        """Log the outcome of one reviewed file."""
        self.info(f"Reviewed {file_path}: score={score}")
        self.debug(
            "  issues: "
            + ", ".join(f"{severity}={count}" for severity, count in counts.items())
        )

    def get_log_path(self) -> Path:
        """Get the path to the current log file."""
        return self.log_file

    def close(self) -> None:
        """Detach and close this run's handlers."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()


# Global logger instance
_logger: Optional[PipelineLogger] = None


def get_logger() -> Optional[PipelineLogger]:
    """Get the global logger instance."""
    return _logger


def init_logger(logs_dir: Path, run_id: str | None = None, verbose: bool = False) -> PipelineLogger:
    """Initialize and return a new logger."""
    global _logger
    _logger = PipelineLogger(logs_dir, run_id, verbose)
    return _logger
