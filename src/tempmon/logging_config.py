from __future__ import annotations
import logging, os, sys
from logging.handlers import RotatingFileHandler

FORMAT = "%(asctime)s %(levelname)s [%(shortname)s.%(funcName)s] %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

class ShortFormatter(logging.Formatter):
    """Adds %(shortname)s, the last dotted part of the logger name (e.g. ControlLoop)."""
    def format(self, record: logging.LogRecord) -> str:
        record.shortname = record.name.rsplit('.', 1)[-1]
        return super().format(record)

def _console_handlers(formatter: logging.Formatter) -> list[logging.Handler]:
    # diagnostics below ERROR on stdout, read failures and fatal errors on stderr
    out = logging.StreamHandler(stream=sys.stdout)
    out.addFilter(lambda r: r.levelno < logging.ERROR)
    err = logging.StreamHandler(stream=sys.stderr)
    err.setLevel(logging.ERROR)
    for h in (out, err): h.setFormatter(formatter)
    return [out, err]

def setup_logging(enabled: bool = True, level: str | int = "INFO", log_file: str | None = None) -> None:
    """Configure root logging once; later calls are ignored."""
    if getattr(setup_logging, "_configured", False):
        return
    setup_logging._configured = True
    if not enabled:
        logging.disable(logging.CRITICAL)
        return

    logging.disable(logging.NOTSET)
    lvl = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    formatter = ShortFormatter(fmt=FORMAT, datefmt=DATEFMT)
    handlers = _console_handlers(formatter)
    file_error = None
    if log_file:
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            fh = RotatingFileHandler(log_file, maxBytes=512_000, backupCount=3)
            fh.setFormatter(formatter); handlers.append(fh)
        except OSError as e:
            file_error = e

    logging.basicConfig(level=lvl if isinstance(lvl, int) else logging.INFO, handlers=handlers, force=True)
    if file_error:
        logging.getLogger(__name__).warning("Log file %s unusable, console only: %s", log_file, file_error)

def resolve_logging(level: str | None = None, log_file: str | None = None) -> tuple[bool, str, str | None]:
    """
    enabled/level/file: CLI values first, then TEMPMON_LOGGING=1|0,
    TEMPMON_LOG_LEVEL and TEMPMON_LOG_FILE.
    """
    env_enabled = os.getenv("TEMPMON_LOGGING", "1").lower()
    return (env_enabled not in ("0", "false", "no"),
            level or os.getenv("TEMPMON_LOG_LEVEL", "INFO"),
            log_file or os.getenv("TEMPMON_LOG_FILE"))
