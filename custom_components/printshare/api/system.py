"""
Backend-wide settings calls.
"""
import logging

from custom_components.printshare.const import CMD_SET_LANGUAGE
from custom_components.printshare.requests import call_command

_LOGGER = logging.getLogger(__name__)


async def set_language(base_url: str, code: str) -> None:
    """Tell the backend which language to use for its own messages."""
    await call_command(base_url, CMD_SET_LANGUAGE, {"lang": code})
    _LOGGER.debug("Backend language set to %s", code)
