"""
Logging setup for the BBCode renderer command line.

Rendered text is written to stdout, so log records always go to stderr,
and optionally to a log file as well.

[logging] keys:
    level       root level name (default INFO)
    format      record format
    file        log file path
    file-level  level of the file handler (default: root level)
    rotate      rotate the log file at midnight, keeping a week of backups

[logging.logger] sets levels of single loggers, either as
`"lib.bbcode" = "DEBUG"` or as a table `[logging.logger."lib.bbcode"]`
with a `level` key.
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROTATE_BACKUP_COUNT = 7

# Reports every recovered tag at DEBUG
RESOLVER_LOGGER = "lib.bbcode.resolver"


def parseLogLevel(value: Any, default: int) -> int:
    """
    Convert a level name ("debug", "INFO") or number to a logging level.

    Args:
        value: Level from configuration, may be None
        default: Level to use for missing or unknown values

    Returns:
        Logging level
    """
    if value is None:
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    level = logging.getLevelName(str(value).upper())
    if isinstance(level, int):
        return level

    logger.error(f"Unknown log level '{value}', using {logging.getLevelName(default)}")
    return default


def _makeFileHandler(config: Dict[str, Any], level: int) -> Optional[logging.Handler]:
    logFile = config.get("file")
    if not logFile:
        return None

    handler: logging.Handler
    try:
        Path(logFile).parent.mkdir(parents=True, exist_ok=True)
        if config.get("rotate", False):
            handler = TimedRotatingFileHandler(
                filename=logFile,
                when="midnight",
                backupCount=ROTATE_BACKUP_COUNT,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(logFile, encoding="utf-8")
    except OSError as e:
        logger.error(f"Can't log to file {logFile}: {e}")
        return None

    handler.setLevel(parseLogLevel(config.get("file-level"), level))
    return handler


def _loggerLevels(config: Dict[str, Any]) -> Dict[str, Any]:
    levels: Dict[str, Any] = {}
    for name, loggerConfig in config.get("logger", {}).items():
        levels[name] = loggerConfig.get("level") if isinstance(loggerConfig, dict) else loggerConfig
    return levels


def initLogging(config: Dict[str, Any], verbosity: int = 0) -> None:
    """
    Configure logging for a render run.

    Root handlers are replaced, so calling this again reconfigures logging
    instead of duplicating output.

    Args:
        config: The [logging] configuration table
        verbosity: Levels to shift the root level by, as given on the command
            line (1 for -v, -1 for -q). At DEBUG the resolver stays at INFO
            unless verbosity is 2 or more or a level is configured for it.
    """
    level = parseLogLevel(config.get("level"), logging.INFO)
    level = min(max(level - verbosity * 10, logging.DEBUG), logging.CRITICAL)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    fileHandler = _makeFileHandler(config, level)
    if fileHandler is not None:
        handlers.append(fileHandler)

    formatter = logging.Formatter(config.get("format", DEFAULT_LOG_FORMAT))
    rootLogger = logging.getLogger()
    for handler in rootLogger.handlers[:]:
        rootLogger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        rootLogger.addHandler(handler)
    rootLogger.setLevel(level)

    loggerLevels = _loggerLevels(config)
    if level < logging.INFO and verbosity < 2 and not {"lib.bbcode", RESOLVER_LOGGER} & loggerLevels.keys():
        logging.getLogger(RESOLVER_LOGGER).setLevel(logging.INFO)

    for name, loggerLevel in loggerLevels.items():
        logging.getLogger(name).setLevel(parseLogLevel(loggerLevel, level))

    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, handlers={len(handlers)}")
