# catalog_app/log_setup.py
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "catalog_app"
FILE_LOG_FORMAT = '%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s'


def make_console_handler(level: int) -> RichHandler:
    """Rich handler on stderr. Time and source location are shown only at DEBUG."""
    verbose = level <= logging.DEBUG
    handler = RichHandler(
        level=level,
        console=Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        log_time_format='%H:%M:%S',
    )
    handler.setFormatter(logging.Formatter('%(message)s'))
    return handler


def session_header(session: Optional[Mapping[str, Any]] = None) -> List[str]:
    lines = [f"--- Resolution session started: {datetime.now(timezone.utc).isoformat()} ---"]
    for key, value in (session or {}).items():
        lines.append(f"{key}: {value if value not in (None, '') else '-'}")
    return lines


def setup_logging(log_level_console: int = logging.INFO, log_file: Optional[str] = None,
                  session: Optional[Mapping[str, Any]] = None) -> logging.Logger:
    """
    Configures the package logger: a rich console handler at the requested level
    and, when `log_file` is given, a UTF-8 file handler that records everything
    at DEBUG. The file starts each run with the `session` details (profile,
    catalog URL, command). Calling it again replaces the previous handlers.
    """
    log = logging.getLogger(PACKAGE_LOGGER)
    log.setLevel(logging.DEBUG)
    for handler in log.handlers[:]:
        log.removeHandler(handler)
        handler.close()

    log.addHandler(make_console_handler(log_level_console))

    if log_file:
        try:
            log_file_path = Path(log_file).resolve()
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file_path, mode='a', encoding='utf-8')
        except OSError as e:
            log.error(f"Failed to configure file logging to '{log_file}': {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S%z'))
            log.addHandler(file_handler)
            # Console shows the header only at DEBUG.
            for line in session_header(session):
                log.debug(line)
    return log
