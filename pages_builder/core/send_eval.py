"""
Evaluation submission utility with retry logic
"""
import asyncio
import re
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from pages_builder.core.errors import NotifyError
from pages_builder.core.logger import logger


_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?://[^)]+)\)", re.IGNORECASE)
_HTTP_URL = TypeAdapter(AnyHttpUrl)


def sanitize_url(raw_url: str) -> str:
    """
    Clean up an evaluation_url the way people tend to paste it.

    Example:
        >>> sanitize_url("[see here](https://example.com/cb)")
        'https://example.com/cb'
        >>> sanitize_url(" <https://example.com/cb> ")
        'https://example.com/cb'

    Raises:
        NotifyError: the result is not a valid http(s) URL
    """
    target = raw_url or ""
    match = _MARKDOWN_LINK_RE.search(target)
    if match:
        target = match.group(2)
    target = target.strip().lstrip("<").rstrip(">").strip()

    try:
        _HTTP_URL.validate_python(target)
    except ValidationError as e:
        raise NotifyError(f"Failed to parse URL from {raw_url!r}") from e
    return target


async def _post_once(url: str, payload: Dict[str, Any], timeout: float, transport: Optional[httpx.AsyncBaseTransport]) -> None:
    target = sanitize_url(url)
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(
            target,
            json=payload,
            headers={"Content-Type": "application/json"}
        )
    if not response.is_success:
        raise NotifyError(f"Evaluation returned {response.status_code} | Response: {response.text[:200]}")
    logger.info(f"Evaluation POST successful | status={response.status_code} | URL={target}")


async def send_evaluation(
    evaluation_url: str,
    payload: Dict[str, Any],
    max_retries: int = 5,
    timeout: float = 30.0,
    initial_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    POST payload to evaluation_url, retrying with exponential backoff.

    Any 2xx counts as delivered. Non-2xx responses, network errors and
    unparseable URLs are all retried the same way; the delay starts at
    initial_delay and doubles after every failed attempt. Never raises.

    Returns:
        True once delivered, False after max_retries failed attempts
    """
    delay = initial_delay
    for attempt in range(max_retries):
        logger.info(f"-----Attempt {attempt + 1}/{max_retries} | Sending to {evaluation_url}-----")
        try:
            await _post_once(evaluation_url, payload, timeout, transport)
            logger.info(
                f"Evaluation submitted successfully | "
                f"Email={payload.get('email')} | Task={payload.get('task')} | Round={payload.get('round')}"
            )
            return True
        except NotifyError as e:
            logger.warning(f"Attempt {attempt + 1}/{max_retries} failed | {e}")
        except httpx.HTTPError as e:
            logger.error(f"Network error on attempt {attempt + 1}/{max_retries} | Error: {e}")
        except Exception as e:
            logger.error(f"Unexpected error on attempt {attempt + 1}/{max_retries} | Error: {e}", exc_info=True)

        if attempt < max_retries - 1:
            logger.info(f"Retrying in {delay} seconds...")
            await sleep(delay)
            delay *= 2

    logger.error(
        f"Failed to send evaluation after {max_retries} attempts | "
        f"Email={payload.get('email')} | Task={payload.get('task')} | Round={payload.get('round')} | "
        f"URL={evaluation_url}"
    )
    logger.info(f"=====Final payload that failed=====\n{payload}\n===============")
    return False
