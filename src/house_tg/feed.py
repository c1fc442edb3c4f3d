"""Client for the upstream rental listing search API."""

import asyncio
import logging
from typing import Any, Dict, List, Mapping

import aiohttp

from .errors import FetchError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


def parse_listing_ids(payload: Any) -> List[int]:
    """
    Extract listing identifiers from a search response.

    Args:
        payload: Decoded JSON body, expected to look like
            ``{"properties": [{"identifier": 123, ...}, ...]}``.

    Returns:
        Identifiers in the order the provider returned them (newest first).

    Raises:
        FetchError: If the payload does not have that shape.
    """
    if not isinstance(payload, dict):
        raise FetchError(f"Expected a JSON object, got {type(payload).__name__}")
    properties = payload.get("properties")
    if not isinstance(properties, list):
        raise FetchError("Response has no 'properties' list")

    ids: List[int] = []
    for index, prop in enumerate(properties):
        identifier = prop.get("identifier") if isinstance(prop, dict) else None
        # bool is an int subclass; reject it explicitly
        if not isinstance(identifier, int) or isinstance(identifier, bool):
            raise FetchError(f"Property #{index} has no integer 'identifier'")
        ids.append(identifier)
    return ids


class FeedClient:
    """Fetches the current snapshot of listing ids with fixed search parameters."""

    def __init__(
        self,
        url: str,
        params: Mapping[str, str],
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.url = url
        self.params: Dict[str, str] = dict(params)
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(self) -> List[int]:
        """
        Call the search endpoint once.

        Returns:
            Listing ids, most recently listed first.

        Raises:
            FetchError: On network failure, timeout, non-200 status or a
                malformed body.
        """
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            try:
                async with session.get(self.url, params=self.params) as resp:
                    if resp.status != 200:
                        raise FetchError(f"Feed returned HTTP {resp.status}")
                    payload = await resp.json(content_type=None)
            except asyncio.TimeoutError as e:
                raise FetchError(f"Timed out fetching {self.url}") from e
            except aiohttp.ClientError as e:
                raise FetchError(f"Cannot fetch {self.url}: {e}") from e
            except ValueError as e:
                raise FetchError(f"Feed body is not valid JSON: {e}") from e

        ids = parse_listing_ids(payload)
        logger.debug("Fetched %d listing ids from %s", len(ids), self.url)
        return ids
