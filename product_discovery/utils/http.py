from __future__ import annotations

import asyncio
from typing import Optional, Tuple
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

from ..errors import FetchError

logger = logging.getLogger(__name__)


async def fetch_text(
    session: ClientSession,
    url: str,
    *,
    timeout: float = 15.0,
    user_agent: Optional[str] = None,
    retries: int = 0,
) -> Tuple[str, int, str]:
    """
    GET ``url`` and return ``(body, status, final_url)``.
    Raises FetchError once every attempt failed; any non-2xx status is a failure.
    """
    headers = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    last_exc: Optional[FetchError] = None
    for attempt in range(retries + 1):
        if attempt:
            await asyncio.sleep(min(2 ** (attempt - 1), 5))
        try:
            async with session.get(url, headers=headers, timeout=ClientTimeout(total=timeout)) as resp:
                if not 200 <= resp.status < 300:
                    raise FetchError(url, f"HTTP {resp.status}", status=resp.status)
                return await resp.text(errors="replace"), resp.status, str(resp.url)
        except FetchError as exc:
            last_exc = exc
        except asyncio.TimeoutError as exc:
            last_exc = FetchError(url, f"timed out after {timeout}s")
            last_exc.__cause__ = exc
        except (aiohttp.ClientError, ValueError) as exc:
            # ValueError covers URLs aiohttp refuses to build a request for
            last_exc = FetchError(url, repr(exc))
            last_exc.__cause__ = exc
        logger.debug("fetch_text attempt %s failed for %s: %s", attempt + 1, url, last_exc.reason)

    assert last_exc is not None
    raise last_exc


def create_session(user_agent: Optional[str] = None) -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=0)  # unlimited; concurrency managed via semaphore
    headers = {"User-Agent": user_agent} if user_agent else None
    return aiohttp.ClientSession(connector=connector, headers=headers)
