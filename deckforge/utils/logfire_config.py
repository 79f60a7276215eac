"""
Logfire setup for the deckforge service process.
"""
import io
import os
import sys

import logfire

from deckforge import __version__

_configured = False


def configure_logfire(force: bool = False) -> bool:
    """
    Configure Logfire for the running service.

    Args:
        force: Reconfigure even if already configured

    Returns:
        bool: True if Logfire is configured
    """
    global _configured

    if _configured and not force:
        return True

    token = os.getenv("LOGFIRE_TOKEN")
    if not token:
        return False

    os.environ["LOGFIRE_CONSOLE_NO_SHOW"] = "1"
    old_stdout, old_stderr = sys.stdout, sys.stderr
    sys.stdout, sys.stderr = io.StringIO(), io.StringIO()
    error = None
    try:
        logfire.configure(
            token=token,
            service_name="deckforge",
            service_version=os.getenv("APP_VERSION", __version__),
            console=False,
        )
    except Exception as e:
        error = e
    finally:
        sys.stdout, sys.stderr = old_stdout, old_stderr

    if error is not None:
        print(f"ERROR: Logfire configuration failed: {error}")
        _configured = False
        return False

    _configured = True

    logfire.info("Logfire configured")
    return True


def is_configured() -> bool:
    return _configured


def instrument_agents() -> bool:
    """Instrument every pydantic-ai Agent the clients create."""
    if not configure_logfire():
        return False

    try:
        logfire.instrument_pydantic_ai()
        logfire.info("PydanticAI instrumentation enabled")
        return True
    except Exception as e:
        logfire.error(f"Failed to instrument PydanticAI: {e}")
        return False


def instrument_fastapi(app) -> bool:
    """Instrument the FastAPI app when Logfire is configured."""
    if not is_configured():
        return False

    try:
        logfire.instrument_fastapi(app)
        return True
    except Exception as e:
        logfire.error(f"Failed to instrument FastAPI: {e}")
        return False
