import logging
import re
import sys
from pathlib import Path


def strip_ansi_codes(text: str) -> str:
    """Remove ANSI escape codes from text.

    Removes sequences like [31m, [1;33m, etc.
    """
    ansi_escape = re.compile(r"\033\[[0-9;]*m")
    return ansi_escape.sub("", text)


class ColoredFormatter(logging.Formatter):
    """Logging formatter that colors the level and tags each compiler stage with an icon."""

    # ANSI Escape Codes
    RESET = "\033[0m"
    BOLD = "\033[1m"

    COLORS = {
        "DEBUG": "\033[37m",  # White
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[1;31m",  # Bold Red
    }

    # Icons and colors per component, most specific first
    STAGE_THEMES = {
        # Compiler stages
        "upper_doodle.triples.grammar": ("🔤", "\033[1;36m"),  # Bold Cyan
        "upper_doodle.triples.generator": ("🔗", "\033[1;32m"),  # Bold Green
        "upper_doodle.triples.reader": ("📖", "\033[1;35m"),  # Bold Magenta
        "upper_doodle.triples.serializer": ("🐢", "\033[1;38;5;202m"),  # Bold Orange
        "upper_doodle.triples.validator": ("✅", "\033[1;33m"),  # Bold Yellow
        # Pipeline
        "upper_doodle.pipeline": ("⚙️ ", "\033[1;34m"),  # Bold Blue
        "upper_doodle.loaders": ("📂", "\033[1;36m"),  # Bold Cyan
        # Infrastructure
        "upper_doodle.config": ("🛠️ ", "\033[1;90m"),  # Dark Gray
        "upper_doodle.utils": ("🛠️ ", "\033[1;90m"),  # Dark Gray
        "upper_doodle.main": ("🚀", "\033[1;32m"),  # Bold Green
        "__main__": ("🚀", "\033[1;32m"),  # Bold Green
        "root": ("⚙️ ", "\033[1;90m"),  # Dark Gray
    }

    def format(self, record):
        icon, stage_color = "", ""
        for name, theme in self.STAGE_THEMES.items():
            # Match both 'upper_doodle.module' and 'module'
            alt_name = name.removeprefix("upper_doodle.")
            if record.name.startswith(name) or record.name.startswith(alt_name):
                icon, stage_color = theme
                break

        # Fallback for other loggers (rdflib, pyshacl)
        if not icon:
            icon = "•"
            stage_color = self.BOLD

        level_color = self.COLORS.get(record.levelname, self.RESET)
        level_name = f"{level_color}{record.levelname:8}{self.RESET}"

        short_name = record.name.split(".")[-1]
        stage_display = f"{stage_color}{icon} {short_name:12}{self.RESET}"

        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            message = f"{level_color}{message}{self.RESET}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        timestamp = self.formatTime(record, self.datefmt)
        return f"{timestamp} | {level_name} | {stage_display} | {message}"


class PlainFormatter(logging.Formatter):
    """Plain text formatter for file logging (no ANSI codes)."""

    def format(self, record):
        timestamp = self.formatTime(record, self.datefmt)
        short_name = record.name.split(".")[-1]
        message = strip_ansi_codes(record.getMessage())
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{timestamp} | {record.levelname:8} | {short_name:12} | {message}"


# Global file handler reference (to allow adding it later)
_file_handler: logging.FileHandler | None = None


def setup_colored_logging(level=logging.INFO, log_file: str | Path | None = None):
    """
    Sets up global logging with the ColoredFormatter.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to log file for persistent logging
    """
    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_formatter = ColoredFormatter(datefmt="%H:%M:%S")
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = []  # Clear existing handlers
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    # File handler (plain text, no colors)
    if log_file:
        add_file_handler(log_file, level)

    # rdflib and pyshacl are chatty at DEBUG
    logging.getLogger("rdflib").setLevel(logging.WARNING)
    logging.getLogger("pyshacl").setLevel(logging.WARNING)


def add_file_handler(log_file: str | Path, level=logging.DEBUG) -> logging.FileHandler:
    """
    Add a file handler to the root logger.

    Args:
        log_file: Path to the log file
        level: Logging level for file (default: DEBUG for maximum detail)

    Returns:
        The created FileHandler
    """
    global _file_handler

    # Remove existing file handler if present
    if _file_handler:
        remove_file_handler()

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    _file_handler = logging.FileHandler(str(log_path), mode="w", encoding="utf-8")
    _file_handler.setLevel(level)
    _file_handler.setFormatter(PlainFormatter(datefmt="%Y-%m-%d %H:%M:%S"))

    logging.getLogger().addHandler(_file_handler)
    logging.info("File logging enabled: %s", log_path)

    return _file_handler


def remove_file_handler() -> None:
    """Remove the file handler from the root logger."""
    global _file_handler

    if _file_handler:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
