"""
Low-level HTTP request library for the sharing backend's RPC endpoint.
This module handles all HTTP requests with automatic retry on timeout and
proper error handling.
"""
import asyncio
import logging

import aiohttp

from custom_components.printshare.const import REQUEST_ATTEMPTS, REQUEST_TIMEOUT

_LOGGER = logging.getLogger(__name__)


class ApiResponseError(Exception):
    """Exception raised when the backend answers with an error envelope."""
    def __init__(self, error_json: dict):
        self.error_json = error_json
        self.error = error_json.get("error")
        super().__init__(str(self.error))


async def check_backend_availability(base_url: str, timeout: int = 15) -> bool:
    """
    Check if the sharing backend is reachable by sending a GET to its root.

    Args:
        base_url: Base URL of the backend
        timeout: Timeout in seconds for the request

    Returns:
        True if the backend answered with a non-5xx status, False otherwise
    """
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.get(base_url) as response:
                if response.status >= 500:
                    _LOGGER.warning("Backend is not healthy (status %s)", response.status)
                    return False
                return True

    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while checking backend at %s", base_url)
        return False
    except aiohttp.ClientError as e:
        _LOGGER.warning("Backend at %s is not reachable: %s", base_url, e)
        return False


async def call_command(
    base_url: str,
    command: str,
    payload: dict | None = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS,
):
    """
    Invoke one backend command and return its result.

    Args:
        base_url: Base URL of the backend
        command: Command name, appended as /api/<command>
        payload: JSON arguments of the command (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of attempts

    Returns:
        Value of the "success" member of the reply envelope

    Raises:
        asyncio.TimeoutError: If all attempts time out
        ApiResponseError: If the backend reports an error
        ValueError: If the reply is not a JSON envelope
        aiohttp.ClientError: For other HTTP or network errors
    """
    url = f"{base_url.rstrip('/')}/api/{command}"

    for attempt in range(max_attempts):
        timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.post(url, json=payload or {}) as response:
                    return await _process_response(response, url)

        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                _LOGGER.debug("Timeout on %s (attempt %s), retrying", command, attempt + 1)
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempts",
                command, url, max_attempts
            )
            raise

    # max_attempts < 1
    raise ValueError(f"No attempt made for {command}")


async def _process_response(response, url: str):
    """
    Unwrap a {"success": ...} / {"error": ...} reply envelope.

    Raises:
        ApiResponseError: For error envelopes
        ValueError: If response has unexpected content type or shape
    """
    content_type = response.headers.get('Content-Type', '')

    if 'application/json' not in content_type:
        text = await response.text()
        _LOGGER.warning(
            "Received non-JSON response from %s: status %s, content-type: %s, body preview: %s",
            url, response.status, content_type, text[:200]
        )
        raise ValueError(
            f"HTTP {response.status} with {content_type} "
            f"(expected application/json) from {url}"
        )

    body = await response.json()
    if not isinstance(body, dict):
        raise ValueError(f"Unexpected response format from {url}: {body!r}")
    if body.get("error"):
        raise ApiResponseError(body)
    if response.status != 200:
        raise ValueError(f"HTTP {response.status} from {url}")
    if "success" not in body:
        raise ValueError(f"Unexpected response format from {url}: {body!r}")
    return body["success"]
