import pytest

from catalog_scraper.models.keys import (
    CourseKey,
    SectionKey,
    get_class_hash,
    get_section_hash,
    parse_section_hash,
)


def test_class_hash_format():
    key = CourseKey("neu.edu", "202030", "CS", "2500")
    assert key.hash() == "neu.edu/202030/CS/2500"
    assert key.hash() == key.hash()


def test_section_hash_appends_crn():
    key = SectionKey("neu.edu", "202030", "CS", "2500", "30340")
    assert key.hash() == "neu.edu/202030/CS/2500/30340"
    assert key.course_key == CourseKey("neu.edu", "202030", "CS", "2500")


def test_hash_replaces_unsafe_characters():
    key = CourseKey("neu.edu", "202030", "A&B", "12 3/4")
    assert key.hash() == "neu.edu/202030/A_B/12_3_4"


def test_hash_from_any_object():
    class Record:
        host = "neu.edu"
        term_id = "202030"
        subject = "CS"
        class_id = "2500"
        crn = "1"

    assert get_class_hash(Record()) == "neu.edu/202030/CS/2500"
    assert get_section_hash(Record()) == "neu.edu/202030/CS/2500/1"


def test_missing_field_is_an_error():
    with pytest.raises(ValueError, match="invalid fields for class hash"):
        CourseKey("neu.edu", "202030", "", "2500").hash()
    with pytest.raises(ValueError, match="invalid fields for section hash"):
        SectionKey("neu.edu", "202030", "CS", "2500", None).hash()


def test_distinct_keys_hash_differently():
    keys = [
        CourseKey("neu.edu", "202030", "CS", "2500"),
        CourseKey("neu.edu", "202030", "CS", "2510"),
        CourseKey("neu.edu", "202010", "CS", "2500"),
        CourseKey("neu.edu", "202030", "MATH", "2500"),
    ]
    assert len({k.hash() for k in keys}) == len(keys)


def test_parse_section_hash():
    assert parse_section_hash("neu.edu/202030/CS/2500/30340") == SectionKey(
        "neu.edu", "202030", "CS", "2500", "30340"
    )
    with pytest.raises(ValueError, match="invalid section hash"):
        parse_section_hash("neu.edu/202030/CS/2500")
