from datetime import datetime, timedelta

import pytest

from app.core.errors import NoResultsError, PageOutOfRangeError, ValidationError
from app.models.note import Category, Note
from app.models.user import User
from app.services.notes import DEFAULT_SIZE, MAX_SIZE, date_bounds, list_notes

NOW = datetime(2024, 6, 15, 12, 0, 0)


def make_user(db, email="owner@test.com"):
    user = User(username=email.split("@")[0], email=email, password="")
    db.add(user)
    db.commit()
    return user


def make_note(db, owner, title="note", updated_at=NOW, categories=()):
    note = Note(
        user_id=owner.id,
        title=title,
        content="body",
        deadline=NOW,
        files=[],
        created_at=updated_at,
        updated_at=updated_at,
    )
    note.categories = list(categories)
    db.add(note)
    db.commit()
    return note


@pytest.fixture
def owner(db_session):
    return make_user(db_session)


@pytest.fixture
def twenty_notes(db_session, owner):
    # note-00 is the oldest, note-19 the newest
    return [
        make_note(db_session, owner, title=f"note-{i:02d}", updated_at=NOW - timedelta(hours=20 - i))
        for i in range(20)
    ]


def test_defaults_first_page(db_session, owner, twenty_notes):
    result = list_notes(db_session, owner.id, now=NOW)
    assert result.total == 20
    assert result.pages == 2
    assert len(result.notes) == DEFAULT_SIZE
    assert [n.title for n in result.notes][:3] == ["note-19", "note-18", "note-17"]
    stamps = [n.updated_at for n in result.notes]
    assert stamps == sorted(stamps, reverse=True)


def test_second_page_skips_first(db_session, owner, twenty_notes):
    result = list_notes(db_session, owner.id, page="2", size="15", now=NOW)
    assert [n.title for n in result.notes] == ["note-04", "note-03", "note-02", "note-01", "note-00"]


def test_custom_size(db_session, owner, twenty_notes):
    result = list_notes(db_session, owner.id, page="3", size="7", now=NOW)
    assert result.pages == 3
    assert len(result.notes) == 6
    assert result.notes[0].title == "note-05"


def test_non_numeric_page_and_size_fall_back(db_session, owner, twenty_notes):
    result = list_notes(db_session, owner.id, page="abc", size="", now=NOW)
    assert len(result.notes) == DEFAULT_SIZE
    assert result.notes[0].title == "note-19"

    result = list_notes(db_session, owner.id, page="0", size="-4", now=NOW)
    assert len(result.notes) == DEFAULT_SIZE


def test_oversized_size_is_capped(db_session, owner, twenty_notes):
    result = list_notes(db_session, owner.id, size=str(10**20), now=NOW)
    assert result.pages == 1
    assert len(result.notes) == 20

    for i in range(MAX_SIZE):
        make_note(db_session, owner, title=f"extra-{i}")
    result = list_notes(db_session, owner.id, size="500", now=NOW)
    assert len(result.notes) == MAX_SIZE
    assert result.pages == 2


def test_page_out_of_range(db_session, owner, twenty_notes):
    with pytest.raises(PageOutOfRangeError):
        list_notes(db_session, owner.id, page="3", size="10", now=NOW)


def test_no_results(db_session, owner):
    with pytest.raises(NoResultsError):
        list_notes(db_session, owner.id, now=NOW)


def test_no_results_after_filtering(db_session, owner, twenty_notes):
    with pytest.raises(NoResultsError):
        list_notes(db_session, owner.id, search="missing", now=NOW)


@pytest.mark.parametrize("term", ["weekly", "REPORT", "ly rep", "Weekly Report"])
def test_search_is_case_insensitive_substring(db_session, owner, term):
    make_note(db_session, owner, title="Weekly Report")
    make_note(db_session, owner, title="Groceries")
    result = list_notes(db_session, owner.id, search=term, now=NOW)
    assert [n.title for n in result.notes] == ["Weekly Report"]


def test_search_wildcards_are_literal(db_session, owner):
    make_note(db_session, owner, title="100% done")
    make_note(db_session, owner, title="halfway")
    result = list_notes(db_session, owner.id, search="%", now=NOW)
    assert [n.title for n in result.notes] == ["100% done"]


def test_from_date_start_of_day_is_inclusive(db_session, owner):
    day = datetime(2024, 6, 10)
    make_note(db_session, owner, title="at-midnight", updated_at=day)
    make_note(db_session, owner, title="one-ms-before", updated_at=day - timedelta(milliseconds=1))
    result = list_notes(db_session, owner.id, from_date="2024-06-10", now=NOW)
    assert [n.title for n in result.notes] == ["at-midnight"]


def test_to_date_end_of_day_is_inclusive(db_session, owner):
    make_note(db_session, owner, title="last-ms", updated_at=datetime(2024, 6, 10, 23, 59, 59, 999000))
    make_note(db_session, owner, title="next-day", updated_at=datetime(2024, 6, 11))
    result = list_notes(db_session, owner.id, to_date="2024-06-10", now=NOW)
    assert [n.title for n in result.notes] == ["last-ms"]


def test_default_end_is_end_of_today(db_session, owner):
    make_note(db_session, owner, title="today", updated_at=NOW.replace(hour=23))
    make_note(db_session, owner, title="tomorrow", updated_at=NOW + timedelta(days=1))
    result = list_notes(db_session, owner.id, now=NOW)
    assert [n.title for n in result.notes] == ["today"]


def test_date_bounds_defaults():
    start, end = date_bounds(None, None, now=NOW)
    assert start == datetime(1970, 1, 1)
    assert end == datetime(2024, 6, 15, 23, 59, 59, 999999)


def test_invalid_date_is_rejected(db_session, owner, twenty_notes):
    with pytest.raises(ValidationError):
        list_notes(db_session, owner.id, from_date="yesterday", now=NOW)


def test_only_owner_notes(db_session, owner):
    other = make_user(db_session, email="other@test.com")
    make_note(db_session, owner, title="mine")
    make_note(db_session, other, title="theirs")
    result = list_notes(db_session, owner.id, now=NOW)
    assert result.total == 1
    assert [n.title for n in result.notes] == ["mine"]


def test_categories_are_attached(db_session, owner):
    work = Category(user_id=owner.id, name="work")
    make_note(db_session, owner, title="tagged", categories=[work])
    result = list_notes(db_session, owner.id, now=NOW)
    assert [c.name for c in result.notes[0].categories] == ["work"]
