import asyncio

import pytest

from catalog_scraper.scanners.session import SessionError, get_cookies_for_search
from catalog_scraper.scanners.subject_parser import SubjectCache

from conftest import BASE_URL, TERM_ID


async def test_cookies_for_search(client):
    jar = await get_cookies_for_search(client, BASE_URL, TERM_ID)
    assert jar.get("JSESSIONID") == "session-202030"


async def test_registration_not_allowed(banner, client):
    banner.session_allowed = False
    with pytest.raises(SessionError):
        await get_cookies_for_search(client, BASE_URL, TERM_ID)


async def test_session_opened_once_per_context(banner, ctx):
    await asyncio.gather(*(ctx.cookies() for _ in range(5)))
    assert len(banner.requests_to("/term/search")) == 1


async def test_subject_cache_fetches_once(banner, client):
    cache = SubjectCache(client, BASE_URL)

    tables = await asyncio.gather(*(cache.get(TERM_ID) for _ in range(5)))

    assert len(banner.requests_to("/courseSearch/get_subject")) == 1
    assert tables[0].code_by_description["English & Writing"] == "ENGW"
    assert tables[0].description_by_code["CS"] == "Computer Science"
    assert all(t is tables[0] for t in tables)

    await cache.get("202010")
    assert len(banner.requests_to("/courseSearch/get_subject")) == 2
