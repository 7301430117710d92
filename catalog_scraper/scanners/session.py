"""Term-scoped Banner session acquisition."""
import logging

import httpx

from catalog_scraper.scanners.request import FetchClient

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Banner refused to open a search session for a term."""


async def get_cookies_for_search(client: FetchClient, base_url: str, term_id: str) -> httpx.Cookies:
    """
    Open a search session for one term and return its cookie jar.

    Banner ties every search request to the term picked on the "click
    continue" page, so the jar returned here must be sent with every later
    request for this term and never with another term's.

    Raises:
        SessionError: if Banner answers with regAllowed = false
    """
    jar = httpx.Cookies()
    response = await client.post(
        f"{base_url}/term/search?mode=search",
        form={"term": term_id},
        cookies=jar,
    )

    try:
        body = response.json()
    except ValueError:
        body = {}

    if isinstance(body, dict) and body.get("regAllowed") is False:
        logger.error(f"Failed to get cookies (from clickContinue) for the term {term_id}: {response.text}")
        raise SessionError(f"Registration not allowed for term {term_id}")

    logger.debug(f"Session for {term_id} opened with cookies {sorted(jar.keys())}")
    return jar
