"""Best-effort page title lookup for new mappings."""

import asyncio
import logging
from typing import Optional, Union

import httpx
from bs4 import BeautifulSoup

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_BYTES = 512 * 1024
MAX_TITLE_LENGTH = 300

USER_AGENT = "shorturl-title-fetcher/1.0"


def extract_title(html: Union[str, bytes]) -> Optional[str]:
    """Return the stripped <title> text of an HTML document, if any."""
    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    if not title_tag:
        return None
    title = " ".join(title_tag.get_text().split())
    return title[:MAX_TITLE_LENGTH] or None


class TitleFetcher:
    """Fetch a destination page and pull out its title.

    Reads at most ``max_bytes`` of the body and gives up after
    ``timeout_seconds`` in total. Any failure yields None.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self.client = client
        self.logger = logger or logging.getLogger(__name__)

    async def fetch_title(self, url: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self.logger.debug(f"Title fetch timed out for {url}")
        except httpx.HTTPError as e:
            self.logger.debug(f"Title fetch failed for {url}: {e}")
        return None

    async def _fetch(self, url: str) -> Optional[str]:
        client = self.client or httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
        )
        try:
            async with client.stream("GET", url, headers={"User-Agent": USER_AGENT}) as response:
                if response.status_code >= 400:
                    return None
                if "html" not in response.headers.get("content-type", "html"):
                    return None

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= self.max_bytes:
                        break
        finally:
            if self.client is None:
                await client.aclose()

        return extract_title(bytes(body[:self.max_bytes]))
