import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from fc.common.setup import PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Setting FLOATING_CLOCK_CONSOLE_LOG to anything non-empty also mirrors the log to stderr.
CONSOLE_ENV_VAR = "FLOATING_CLOCK_CONSOLE_LOG"


def _has_handler(logger, handler_name):
    return any(h.get_name() == handler_name for h in logger.handlers)

def _attach(logger, handler, handler_name, level, fmt):
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.set_name(handler_name)
    logger.addHandler(handler)

# Deletes all but the newest `keep` per-run debug logs.
def _prune_debug_runs(debug_dir: Path, name, keep):
    runs = sorted(debug_dir.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
    for run in runs[keep:]:
        try: run.unlink()
        except OSError: pass

# Builds (once per process) the clock's logger. Handlers are named so a second call with the same name hands back
# the already configured logger instead of stacking duplicates.
#   floatingclock.log  size-rotated, kept across runs
#   latest.log         this run only
#   debug/<run>.log    DEBUG level, one per run, newest `historical_debugs` kept
def get_logger(
        name = "floatingclock",
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 2 * 1024 * 1024,
        backup_count = 3,
        console: bool | None = None,
        historical_debugs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(level)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    if not _has_handler(logger, f"{name}:persistent"):
        rotating = RotatingFileHandler(log_dir / f"{name}.log", maxBytes=max_bytes, backupCount=backup_count,
                                       encoding="utf-8")
        _attach(logger, rotating, f"{name}:persistent", level, fmt)

    if not _has_handler(logger, f"{name}:latest"):
        _attach(logger, logging.FileHandler(log_dir / "latest.log", mode="w", encoding="utf-8"),
                f"{name}:latest", level, fmt)

    if historical_debugs > 0 and not _has_handler(logger, f"{name}:historical_debug"):
        debug_dir = log_dir / "debug"
        debug_dir.mkdir(parents=True,exist_ok=True)
        this_run = debug_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"
        _attach(logger, logging.FileHandler(this_run, encoding="utf-8"), f"{name}:historical_debug", logging.DEBUG, fmt)
        _prune_debug_runs(debug_dir, name, historical_debugs)

    if console is None:
        console = bool(os.getenv(CONSOLE_ENV_VAR))
    if console and not _has_handler(logger, f"{name}:console"):
        _attach(logger, logging.StreamHandler(), f"{name}:console", level, fmt)

    return logger

log = get_logger(level=logging.DEBUG,historical_debugs=10)
