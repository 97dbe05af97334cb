import logging
import functools
from typing import Any, Awaitable, Callable


class SmartInternError(Exception):
    """Base class for errors raised by the bot"""


class ConfigError(SmartInternError):
    """Raised when required configuration is missing"""


class ToolError(SmartInternError):
    """Raised when an MCP tool fails; the message names the tool"""



def tool_wrapper(name: str) -> Callable:
    """Log a failing tool handler and re-raise as ToolError("Failed to <name>: ...")"""

    def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except ToolError:
                raise
            except Exception as e:
                logging.error(f"Error in {name} tool: {e}", exc_info=True)
                raise ToolError(f"Failed to {name}: {e}") from e

        return wrapper

    return decorator
