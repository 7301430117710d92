import logging

from catalog_scraper.models.requisite import BooleanReq, CourseReq
from catalog_scraper.scanners.prereq_parser import serialize_coreqs, serialize_prereqs

from conftest import coreq_table, requisite_table

TABLE = {
    "Computer Science": "CS",
    "Mathematics": "MATH",
}


def test_flat_and():
    html = requisite_table(
        ("", "", "", "", "Computer Science", "1800", ""),
        ("And", "", "", "", "Computer Science", "2500", ""),
    )
    assert serialize_prereqs(html, TABLE) == BooleanReq("and", (
        CourseReq("CS", "1800"),
        CourseReq("CS", "2500"),
    ))


def test_group_followed_by_or():
    html = requisite_table(
        ("", "(", "", "", "Computer Science", "1800", ""),
        ("And", "", "", "", "Computer Science", "2500", ")"),
        ("Or", "", "", "", "Mathematics", "1341", ""),
    )
    assert serialize_prereqs(html, TABLE) == BooleanReq("or", (
        BooleanReq("and", (CourseReq("CS", "1800"), CourseReq("CS", "2500"))),
        CourseReq("MATH", "1341"),
    ))


def test_operator_persists_until_changed():
    html = requisite_table(
        ("", "", "", "", "Computer Science", "1800", ""),
        ("Or", "", "", "", "Computer Science", "2500", ""),
        ("", "", "", "", "Mathematics", "1341", ""),
    )
    tree = serialize_prereqs(html, TABLE)
    assert tree.type == "or"
    assert len(tree.values) == 3


def test_empty_group_opening_row():
    html = requisite_table(
        ("", "(", "", "", "", "", ""),
        ("", "", "", "", "Computer Science", "1800", ""),
        ("Or", "", "", "", "Computer Science", "2500", ")"),
        ("And", "", "", "", "Mathematics", "1341", ""),
    )
    assert serialize_prereqs(html, TABLE) == BooleanReq("and", (
        BooleanReq("or", (CourseReq("CS", "1800"), CourseReq("CS", "2500"))),
        CourseReq("MATH", "1341"),
    ))


def test_test_scores():
    html = requisite_table(
        ("", "", "", "", "Computer Science", "1800", ""),
        ("Or", "", "ACT Math", "30", "", "", ""),
        ("Or", "", "SAT Math", "", "", "", ""),
    )
    assert serialize_prereqs(html, TABLE) == BooleanReq("or", (
        CourseReq("CS", "1800"),
        "ACT Math",
    ))


def test_unknown_subject_is_dropped(caplog):
    html = requisite_table(
        ("", "", "", "", "Underwater Basketweaving", "1000", ""),
        ("And", "", "", "", "Computer Science", "2500", ""),
    )
    with caplog.at_level(logging.WARNING):
        tree = serialize_prereqs(html, TABLE)
    assert tree == BooleanReq("and", (CourseReq("CS", "2500"),))
    assert "Underwater Basketweaving" in caplog.text


def test_no_prereqs():
    assert serialize_prereqs("No prerequisite information available.", TABLE) == BooleanReq("and", ())


def test_coreqs_three_columns():
    html = coreq_table(("Computer Science", "2501"), ("Mathematics", "1342"))
    assert serialize_coreqs(html, TABLE) == BooleanReq("and", (
        CourseReq("CS", "2501"),
        CourseReq("MATH", "1342"),
    ))


def test_coreqs_five_columns_and_unknown_subject(caplog):
    html = coreq_table(("Health Science", "1201"), ("Computer Science", "2501"), columns=5)
    with caplog.at_level(logging.WARNING):
        assert serialize_coreqs(html, TABLE) == BooleanReq("and", (CourseReq("CS", "2501"),))
    assert "Health Science" in caplog.text
