"""Shared fixtures: an in-memory Banner served through httpx.MockTransport."""
from typing import Optional
from urllib.parse import parse_qs

import httpx
import pytest

from catalog_scraper.scanners.context import TermContext
from catalog_scraper.scanners.request import FetchClient

BASE_URL = "https://banner.test/StudentRegistrationSsb/ssb"
TERM_ID = "202030"

SUBJECTS = [
    {"code": "CS", "description": "Computer Science"},
    {"code": "MATH", "description": "Mathematics"},
    {"code": "ENGW", "description": "English &amp; Writing"},
]

TERMS = [
    {"code": "202010", "description": "Fall 2019 Semester (View Only)"},
    {"code": "202030", "description": "Spring 2020 Semester"},
    {"code": "202032", "description": "Spring 2020 Law Semester"},
    {"code": "202034", "description": "Spring 2020 CPS Quarter"},
]

NO_PREREQS = "No prerequisite information available."
NO_FEES = "No fee information available."

REQUISITE_HEADERS = ["And/Or", "", "Test", "Score", "Subject", "Course Number", "Level", "Grade", ""]


def requisite_table(*rows: tuple) -> str:
    """
    Banner-style prerequisite table.

    Each row is (and_or, left_paren, test, score, subject, course_number, right_paren).
    """
    head = "".join(f"<th>{h}</th>" for h in REQUISITE_HEADERS)
    body = ""
    for and_or, left, test, score, subject, number, right in rows:
        cells = [and_or, left, test, score, subject, number, "Undergraduate", "D-", right]
        body += "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"
    return f"<section><table><tr>{head}</tr>{body}</table></section>"


def coreq_table(*rows: tuple, columns: int = 3) -> str:
    headers = ["Subject", "Course Number", "Title", "Level", "Grade"][:columns]
    head = "".join(f"<th>{h}</th>" for h in headers)
    body = ""
    for subject, number in rows:
        cells = [subject, number, "Some Title", "Undergraduate", "D-"][:columns]
        body += "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"
    return f"<table><tr>{head}</tr>{body}</table>"


def fee_table(*rows: tuple) -> str:
    body = "".join(f"<tr><td>{d}</td><td>{a}</td></tr>" for d, a in rows)
    return f"<table><tr><th>Description</th><th>Amount</th></tr>{body}</table>"


def section_result(subject: str, number: str, crn: str, term: str = TERM_ID, **overrides) -> dict:
    result = {
        "term": term,
        "subject": subject,
        "courseNumber": number,
        "courseReferenceNumber": crn,
        "maximumEnrollment": 30,
        "seatsAvailable": 5,
        "waitCapacity": 10,
        "waitAvailable": 10,
        "scheduleTypeDescription": "Lecture",
        "campusDescription": "Boston",
        "sectionAttributes": [{"description": "Honors"}],
        "faculty": [{"displayName": "Lerner, Benjamin"}],
        "meetingsFaculty": [{
            "meetingTime": {
                "beginTime": "0915",
                "endTime": "1020",
                "startDate": "01/07/2019",
                "endDate": "04/24/2019",
                "buildingDescription": "West Village H",
                "room": "210",
                "meetingTypeDescription": "Class",
                "monday": True,
                "wednesday": True,
                "thursday": True,
            },
        }],
    }
    result.update(overrides)
    return result


def course_result(subject: str, number: str, title: str, low: float = 4, high: Optional[float] = None) -> dict:
    return {
        "subjectCode": subject,
        "courseNumber": number,
        "courseTitle": title,
        "creditHourLow": low,
        "creditHourHigh": high,
    }


class FakeBanner:
    """Routes requests by path and records every one it receives."""

    DEFAULT_DETAILS = {
        "getCourseDescription": "",
        "getPrerequisites": NO_PREREQS,
        "getCorequisites": "No corequisite information available.",
        "getCourseAttributes": "",
        "getFees": NO_FEES,
    }

    def __init__(self):
        self.terms = list(TERMS)
        self.subjects = list(SUBJECTS)
        self.sections: list[dict] = []
        self.courses: dict[tuple[str, str, str], dict] = {}
        self.details: dict[tuple[str, str, str], dict[str, str]] = {}
        self.session_allowed = True
        self.failing_terms: set[str] = set()
        self.requests: list[httpx.Request] = []

    def add_course(self, subject: str, number: str, title: str, term: str = TERM_ID, **details) -> None:
        self.courses[(term, subject, number)] = course_result(subject, number, title)
        self.details[(term, subject, number)] = details

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path.endswith("/term/search"):
            term = parse_qs(request.content.decode())["term"][0]
            if not self.session_allowed:
                return httpx.Response(200, json={"regAllowed": False})
            return httpx.Response(
                200,
                json={"fwdURL": "/classSearch/classSearch"},
                headers={"Set-Cookie": f"JSESSIONID=session-{term}; Path=/"},
            )

        if path.endswith("/classSearch/getTerms"):
            return httpx.Response(200, json=self.terms)

        if path.endswith("/courseSearch/get_subject"):
            return httpx.Response(200, json=self.subjects)

        if path.endswith("/searchResults/searchResults"):
            term = params["txt_term"]
            if term in self.failing_terms:
                return httpx.Response(200, json={"success": False})
            matches = [
                s for s in self.sections
                if s["term"] == term
                and params.get("txt_subject", s["subject"]) == s["subject"]
                and params.get("txt_courseNumber", s["courseNumber"]) == s["courseNumber"]
            ]
            offset = int(params["pageOffset"])
            size = int(params["pageMaxSize"])
            return httpx.Response(200, json={
                "success": True,
                "totalCount": len(matches),
                "data": matches[offset:offset + size],
            })

        if path.endswith("/courseSearchResults/courseSearchResults"):
            key = (params["txt_term"], params["txt_subject"], params["txt_courseNumber"])
            course = self.courses.get(key)
            return httpx.Response(200, json={
                "success": True,
                "totalCount": 1 if course else 0,
                "data": [course] if course else [],
            })

        if "/courseSearchResults/" in path:
            endpoint = path.rsplit("/", 1)[-1]
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            details = self.details.get((form["term"], form["subjectCode"], form["courseNumber"]), {})
            return httpx.Response(200, text=details.get(endpoint, self.DEFAULT_DETAILS[endpoint]))

        return httpx.Response(404, text="not found")


def make_client(handler, max_retries: int = 2) -> FetchClient:
    return FetchClient(
        max_retries=max_retries,
        retry_delay=0,
        retry_delay_delta=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def banner():
    return FakeBanner()


@pytest.fixture
async def client(banner):
    async with make_client(banner.handler) as fetch_client:
        yield fetch_client


@pytest.fixture
def ctx(client):
    return TermContext(client, TERM_ID, base_url=BASE_URL, host="neu.edu")
