"""Per-term state threaded through one term's scrape."""
import asyncio
from typing import Optional

import httpx

from catalog_scraper.config import settings
from catalog_scraper.scanners.request import FetchClient
from catalog_scraper.scanners.session import get_cookies_for_search
from catalog_scraper.scanners.subject_parser import SubjectCache


class TermContext:
    """
    Everything a parser needs to talk to Banner about one term.

    Holds the term's search session (opened on first use and reused for every
    request in the term) and a handle on the run's subject cache. A context is
    never shared between terms, so cookie jars can't leak across them.
    """

    def __init__(
        self,
        client: FetchClient,
        term_id: str,
        subjects: Optional[SubjectCache] = None,
        base_url: Optional[str] = None,
        host: Optional[str] = None,
    ):
        self.client = client
        self.term_id = term_id
        self.base_url = (base_url or settings.banner_base_url).rstrip("/")
        self.host = host or settings.host
        self.subjects = subjects or SubjectCache(client, self.base_url)
        self._cookies: Optional[httpx.Cookies] = None
        self._cookie_lock = asyncio.Lock()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def cookies(self) -> httpx.Cookies:
        """The term's session jar, opened on first call."""
        if self._cookies is None:
            async with self._cookie_lock:
                if self._cookies is None:
                    self._cookies = await get_cookies_for_search(
                        self.client, self.base_url, self.term_id
                    )
        return self._cookies

    async def code_by_description(self) -> dict[str, str]:
        return await self.subjects.code_by_description(self.term_id)

    async def description_by_code(self) -> dict[str, str]:
        return await self.subjects.description_by_code(self.term_id)

    async def get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        """GET a Banner path inside this term's session."""
        return await self.client.get(self.url(path), params=params, cookies=await self.cookies())

    async def post(self, path: str, form: Optional[dict] = None) -> httpx.Response:
        """POST a form to a Banner path inside this term's session."""
        return await self.client.post(self.url(path), form=form, cookies=await self.cookies())
