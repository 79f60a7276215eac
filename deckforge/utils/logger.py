"""
Logging for deckforge.

Routes through Logfire when a LOGFIRE_TOKEN is configured, otherwise through
the standard library `logging` module. Both wrappers expose the same
`info/warning/error/debug/exception` surface so call sites never care which
one they got.
"""
from typing import Optional

# Decided once at import time
LOGFIRE_CONFIGURED = False

try:
    import logfire
    from config.settings import get_settings

    _settings = get_settings()

    if _settings.LOGFIRE_TOKEN:
        import io
        import os
        import sys

        # logfire prints the project URL on configure; keep stdout clean
        os.environ['LOGFIRE_CONSOLE_NO_SHOW'] = '1'
        old_stdout, old_stderr = sys.stdout, sys.stderr
        sys.stdout, sys.stderr = io.StringIO(), io.StringIO()
        try:
            logfire.configure(
                token=_settings.LOGFIRE_TOKEN,
                service_name="deckforge",
                console=False,
            )
            LOGFIRE_CONFIGURED = True
        except Exception:
            LOGFIRE_CONFIGURED = False
        finally:
            sys.stdout, sys.stderr = old_stdout, old_stderr
except Exception:
    LOGFIRE_CONFIGURED = False


def _format(message, args) -> str:
    return message % args if args else message


class LogfireLogger:
    """Wrapper to make Logfire look like a standard logger."""

    def __init__(self, name: str):
        self.name = name

    def info(self, message, *args, **kwargs):
        logfire.info(f"[{self.name}] {_format(message, args)}", **kwargs)

    def warning(self, message, *args, **kwargs):
        logfire.warn(f"[{self.name}] {_format(message, args)}", **kwargs)

    warn = warning

    def error(self, message, *args, **kwargs):
        kwargs.pop('exc_info', None)
        logfire.error(f"[{self.name}] {_format(message, args)}", **kwargs)

    def debug(self, message, *args, **kwargs):
        logfire.debug(f"[{self.name}] {_format(message, args)}", **kwargs)

    def exception(self, message, *args, **kwargs):
        logfire.error(f"[{self.name}] EXCEPTION: {_format(message, args)}", **kwargs)

    def setLevel(self, level):
        # Logfire filters on its own side
        pass


class StandardLogger:
    """Standard Python logger used when Logfire is not configured."""

    def __init__(self, name: str, level: Optional[str] = None):
        import logging
        import os

        self.logger = logging.getLogger(name)

        level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
        log_level = getattr(logging, level_name, logging.INFO)
        self.logger.setLevel(log_level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(log_level)
            handler.setFormatter(logging.Formatter('[%(levelname)s %(name)s] %(message)s'))
            self.logger.addHandler(handler)

    def info(self, message, *args, **kwargs):
        kwargs.pop('exc_info', None)
        self.logger.info(message, *args, **kwargs)

    def warning(self, message, *args, **kwargs):
        kwargs.pop('exc_info', None)
        self.logger.warning(message, *args, **kwargs)

    warn = warning

    def error(self, message, *args, **kwargs):
        exc_info = kwargs.pop('exc_info', False)
        self.logger.error(message, *args, exc_info=exc_info, **kwargs)

    def debug(self, message, *args, **kwargs):
        kwargs.pop('exc_info', None)
        self.logger.debug(message, *args, **kwargs)

    def exception(self, message, *args, **kwargs):
        self.logger.exception(message, *args, **kwargs)

    def setLevel(self, level):
        self.logger.setLevel(level)


def setup_logger(name: str, level: Optional[str] = None):
    """
    Get a logger for a module.

    Args:
        name: Logger name (usually __name__)
        level: Logging level for the standard logger, defaults to LOG_LEVEL

    Returns:
        LogfireLogger or StandardLogger instance
    """
    if LOGFIRE_CONFIGURED:
        return LogfireLogger(name)
    return StandardLogger(name, level)


logger = setup_logger("deckforge")
