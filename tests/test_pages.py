"""Tests for the page store and the line limit."""

import pytest
from ghost_typewriter.pages import PageStore


@pytest.fixture
def store():
    return PageStore(max_lines=3, first_background="/films/first.png")


def test_starts_with_one_blank_page(store):
    assert len(store) == 1
    assert store.current.text == ""
    assert store.current.background_ref == "/films/first.png"
    assert store.is_last


def test_append_does_not_move_current(store):
    """Test that appending leaves the current index alone."""
    page = store.append("/films/second.png")

    assert page.index == 1
    assert store.current_index == 0
    assert not store.is_last


def test_goto_changes_only_the_index(store):
    """Test that navigation never touches page content."""
    store.set_current_text("first page")
    store.append("/films/second.png")
    store.goto(1)
    store.set_current_text("second page")

    store.goto(0)

    assert store.current.text == "first page"
    assert store.pages[1].text == "second page"
    assert store.pages[1].background_ref == "/films/second.png"


def test_goto_missing_page(store):
    with pytest.raises(ValueError):
        store.goto(5)


def test_line_limit_allows_last_line(store):
    """Test that characters on the last line are accepted."""
    assert not store.would_overflow("AAA\nBBB", "", "", "\n")
    assert not store.would_overflow("AAA\nBBB\nCC", "", "", "C")
    assert store.would_overflow("AAA\nBBB\nCCC", "", "", "\n")


def test_line_limit_counts_ghost_and_buffer(store):
    """Test that uncommitted text counts toward the limit."""
    assert store.would_overflow("AAA", "\nghost", "\nBBB", "\n")
    assert not store.would_overflow("AAA", "ghost", "\nBBB", "\n")


def test_merge_truncates_at_limit(store):
    """Test that merged ghost text never overflows the page."""
    store.set_current_text("one\ntwo")

    merged = store.merge(" and\nthree\nfour\nfive")

    assert merged == "one\ntwo and\nthree"
    assert store.current.text == merged


def test_clip_keeps_only_remaining_lines(store):
    store.set_current_text("one\ntwo ")

    assert store.clip("x\ny\nz") == "x\ny"
    assert store.clip("short") == "short"
    assert store.current.text == "one\ntwo "

    store.set_current_text("a\nb\nc")
    assert store.clip("\nd") == ""


def test_delete_last_char(store):
    store.set_current_text("ab")

    assert store.delete_last_char() == "b"
    assert store.delete_last_char() == "a"
    assert store.delete_last_char() is None


def test_page_label(store):
    store.append("/films/second.png")
    store.goto(1)

    assert store.page_label() == "Page 2 / 2"


def test_snapshot_is_a_copy(store):
    store.set_current_text("before")
    snapshot = store.snapshot(0)

    store.set_current_text("after")

    assert snapshot.text == "before"
