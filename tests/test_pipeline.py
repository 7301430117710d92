"""End to end: fake Banner in, processed snapshot out."""
import json

import pytest

from catalog_scraper.config import settings
from catalog_scraper.models.keys import CourseKey
from catalog_scraper.models.requisite import BooleanReq, CourseBackRef, CourseReq
from catalog_scraper.scanners.banner_parser import BannerScraper
from catalog_scraper.scanners.term_parser import MissingDataError
from catalog_scraper.scraper import CatalogScraper

from conftest import BASE_URL, TERM_ID, coreq_table, requisite_table, section_result


@pytest.fixture
def scraper(client):
    banner_scraper = BannerScraper(client, base_url=BASE_URL, host="neu.edu")
    return CatalogScraper(client, banner_scraper)


@pytest.fixture
def catalog(banner):
    banner.sections = [
        section_result("CS", "2500", "1"),
        section_result("CS", "2510", "2"),
        section_result("CS", "3500", "3"),
    ]
    banner.add_course("CS", "2500", "Fundamentals of Computer Science 1")
    banner.add_course(
        "CS", "2510", "Fundamentals of Computer Science 2",
        getPrerequisites=requisite_table(("", "", "", "", "Computer Science", "2500", "")),
    )
    banner.add_course(
        "CS", "3500", "Object-Oriented Design",
        getPrerequisites=requisite_table(
            ("", "", "", "", "Computer Science", "2510", ""),
            ("Or", "", "", "", "Mathematics", "1341", ""),
        ),
        getCorequisites=coreq_table(("Computer Science", "9999")),
    )
    # No sections this term, only reachable as a prerequisite
    banner.add_course("MATH", "1341", "Calculus 1")
    return banner


async def test_full_pipeline(catalog, scraper):
    snapshot = await scraper.main([TERM_ID])
    courses = {c.course_code: c for c in snapshot.classes}

    assert set(courses) == {"CS 2500", "CS 2510", "CS 3500", "MATH 1341"}
    assert snapshot.get_course(CourseKey("neu.edu", TERM_ID, "MATH", "1341")).name == "Calculus 1"

    assert courses["CS 2500"].prereqs_for == [CourseBackRef("CS", "2510")]
    assert courses["CS 2510"].prereqs == BooleanReq("and", (CourseReq("CS", "2500"),))
    assert courses["CS 2510"].opt_prereqs_for == [CourseBackRef("CS", "3500")]
    assert courses["MATH 1341"].opt_prereqs_for == [CourseBackRef("CS", "3500")]
    assert courses["CS 3500"].coreqs == BooleanReq("and", (CourseReq("CS", "9999", missing=True),))

    # Every section belongs to a scraped course
    class_keys = {c.key for c in snapshot.classes}
    assert all(s.course_key in class_keys for s in snapshot.sections)


async def test_snapshot_json_is_stable(catalog, scraper):
    snapshot = await scraper.main([TERM_ID])
    for record in snapshot.classes + snapshot.sections:
        record.last_update_time = 0

    first = snapshot.to_json()
    assert first == snapshot.to_json()
    data = json.loads(first)
    assert data["sections"][0]["id"] == "neu.edu/202030/CS/2500/1"
    assert data["subjects"]["MATH"] == "Mathematics"


async def test_scrape_picks_terms(catalog, scraper, monkeypatch):
    monkeypatch.setattr(settings, "terms_to_scrape", None)
    monkeypatch.setattr(settings, "number_of_terms", 1)

    snapshot = await scraper.scrape()

    # Newest term first: 202034 has no sections, so nothing is scraped
    assert snapshot.classes == []
    assert catalog.requests_to("/searchResults/searchResults")[0].url.params["txt_term"] == "202034"


async def test_failed_term_aborts_by_default(catalog, scraper, monkeypatch):
    monkeypatch.setattr(settings, "skip_failed_terms", False)
    catalog.failing_terms.add("202010")

    with pytest.raises(MissingDataError):
        await scraper.main([TERM_ID, "202010"])


async def test_failed_term_skipped_when_configured(catalog, scraper, monkeypatch):
    monkeypatch.setattr(settings, "skip_failed_terms", True)
    catalog.failing_terms.add("202010")

    snapshot = await scraper.main([TERM_ID, "202010"])

    assert {s.term_id for s in snapshot.sections} == {TERM_ID}
    assert len(snapshot.classes) == 4
