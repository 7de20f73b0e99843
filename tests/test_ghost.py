"""Tests for drip reveal, word erosion and the ghost slot."""

import random

import pytest
from ghost_typewriter import VirtualClock
from ghost_typewriter.ghost import DripGhost, GhostTextEngine, SequenceGhost, split_words
from ghost_typewriter.sequence import parse_action


@pytest.fixture
def clock():
    return VirtualClock()


def make_drip(clock, config, seed=7, **callbacks):
    return DripGhost(clock, config, random.Random(seed), **callbacks)


def drip_duration(config, text):
    """Ticks to reveal text plus the tick that stabilises it."""
    return (len(text) + 1) * config.drip_interval_ms


def test_drip_reveals_one_character_per_tick(clock, config):
    """Drip "hi": after two ticks the text is shown, the next tick stabilises it."""
    ghost = make_drip(clock, config)
    ghost.seed("hi")
    assert ghost.active_text() == ""

    clock.advance(config.drip_interval_ms)
    assert ghost.active_text() == "h"

    clock.advance(config.drip_interval_ms)
    assert ghost.active_text() == "hi"
    assert not ghost.state.is_stable

    clock.advance(config.drip_interval_ms)
    assert ghost.state.is_stable
    assert [w.text for w in ghost.state.words] == ["hi"]
    assert ghost.active_text() == "hi"


def test_drip_appends_to_newest_response(clock, config):
    """Test that seeding again adds a new response."""
    ghost = make_drip(clock, config)
    ghost.seed("ab")
    clock.advance(2 * config.drip_interval_ms)
    ghost.seed("cd")
    clock.advance(2 * config.drip_interval_ms)

    assert [r.content for r in ghost.state.responses] == ["ab", "cd"]
    assert ghost.active_text() == "abcd"


def test_on_char_called_per_dripped_character(clock, config):
    chars = []
    ghost = make_drip(clock, config, on_char=chars.append)
    ghost.seed("boo")

    clock.advance(drip_duration(config, "boo"))

    assert chars == ["b", "o", "o"]


def test_split_words_keeps_whitespace():
    """Test that an uneroded suggestion renders back exactly."""
    content = " the door\n  creaks "
    words, tail = split_words(content)

    assert [w.text for w in words] == ["the", "door", "creaks"]
    assert [w.leading for w in words] == [" ", " ", "\n  "]
    assert tail == " "
    assert "".join(w.leading + w.text for w in words) + tail == content


def test_each_word_erodes_exactly_once(clock, config):
    """Test the visible -> eroding -> erased lifecycle of every word."""
    history = {}
    ghost = None

    def record():
        for word in ghost.state.words:
            statuses = history.setdefault(word.id, [])
            if not statuses or statuses[-1] != word.status:
                statuses.append(word.status)

    exhausted = []
    ghost = make_drip(clock, config, on_change=record, on_exhausted=exhausted.append)
    ghost.seed("the quick brown")

    clock.advance(drip_duration(config, "the quick brown"))
    clock.advance(10 * config.erosion_interval_ms)

    assert len(history) == 3
    for statuses in history.values():
        assert statuses == ["visible", "eroding", "erased"]
    assert ghost.active_text() == ""
    assert exhausted == [ghost]


def test_whitespace_only_drip_is_exhausted_once_stable(clock, config):
    """Test that a suggestion with no words ends instead of waiting to erode."""
    exhausted = []
    ghost = make_drip(clock, config, on_exhausted=exhausted.append)
    ghost.seed(" \n ")

    clock.advance(drip_duration(config, " \n "))

    assert ghost.state.is_stable
    assert ghost.state.words == []
    assert exhausted == [ghost]
    assert clock.pending() == 0


def test_engine_releases_slot_for_blank_suggestion(clock, config):
    released = []
    engine = GhostTextEngine(clock, config, random.Random(1), on_exhausted=lambda: released.append(True))
    engine.seed_text("   ")

    clock.advance(100)

    assert not engine.has_content
    assert released == [True]


def test_erosion_order_is_reproducible(clock, config):
    """Test that the same seed erodes words in the same order."""

    def erasure_order(seed):
        local_clock = VirtualClock()
        order = []
        ghost = make_drip(local_clock, config, seed=seed)

        def record():
            for word in ghost.state.words:
                if word.status == "eroding" and word.text not in order:
                    order.append(word.text)

        ghost.on_change = record
        ghost.seed("one two three four five")
        local_clock.advance(drip_duration(config, "one two three four five"))
        local_clock.advance(10 * config.erosion_interval_ms)
        return order

    assert erasure_order(3) == erasure_order(3)
    assert sorted(erasure_order(3)) == sorted(["one", "two", "three", "four", "five"])


def test_eroding_word_still_renders(clock, config):
    """Test that only erased words disappear."""
    ghost = make_drip(clock, config)
    ghost.seed("the quick brown")
    clock.advance(drip_duration(config, "the quick brown"))

    clock.advance(config.erosion_interval_ms)
    assert sum(w.status == "eroding" for w in ghost.state.words) == 1
    assert ghost.active_text() == "the quick brown"

    clock.advance(config.erosion_delay_ms)
    erased = [w.text for w in ghost.state.words if w.status == "erased"]
    assert len(erased) == 1
    assert erased[0] not in ghost.active_text().split()
    assert len(ghost.active_text().split()) == 2


def test_commit_keeps_erosion(clock, config):
    """Test that erased words are not resurrected by a commit."""
    ghost = make_drip(clock, config)
    ghost.seed("the quick brown")
    clock.advance(drip_duration(config, "the quick brown"))
    clock.advance(config.erosion_interval_ms + config.erosion_delay_ms)
    rendered = ghost.active_text()

    committed = ghost.commit()

    assert committed == rendered
    assert len(committed.split()) == 2
    clock.advance(10 * config.erosion_interval_ms)
    assert clock.pending() == 0


def test_engine_holds_one_ghost(clock, config):
    """Test that seeding a sequence discards a drip ghost and vice versa."""
    engine = GhostTextEngine(clock, config, random.Random(1))
    drip = engine.seed_text("hello")
    assert engine.kind == "drip"

    sequence = engine.seed_sequence([parse_action({"action": "type", "text": "x", "delay": 10})])
    assert engine.kind == "sequence"
    assert isinstance(engine.current, SequenceGhost)
    assert drip.timers.closed

    clock.advance(100)
    assert engine.current is None
    assert sequence.processor.state.ghost_buffer == "x"


def test_engine_commit_clears_slot(clock, config):
    """Test commit returns the rendered text and empties the slot."""
    engine = GhostTextEngine(clock, config, random.Random(1))
    engine.seed_text("hi")
    clock.advance(2 * config.drip_interval_ms)

    assert engine.commit() == "hi"
    assert not engine.has_content
    assert engine.active_text() == ""
    assert engine.commit() == ""


def test_engine_discard(clock, config):
    engine = GhostTextEngine(clock, config, random.Random(1))
    engine.seed_text("hi")

    engine.discard()
    clock.advance(100)

    assert not engine.has_content
    assert clock.pending() == 0


def test_engine_reports_sequence_completion(clock, config):
    """Test that a finished sequence leaves the slot and reports its text."""
    finished = []
    engine = GhostTextEngine(clock, config, random.Random(1), on_sequence_complete=finished.append)
    engine.seed_sequence(
        [parse_action({"action": "type", "text": "Hi", "delay": 10})],
        metadata={"font_color": "#2a120f"},
    )
    assert engine.snapshot()["style"] == {"font_color": "#2a120f"}

    clock.advance(10)

    assert finished == ["Hi"]
    assert not engine.has_content


def test_engine_typing_lock_follows_sequence(clock, config):
    engine = GhostTextEngine(clock, config, random.Random(1))
    assert engine.allows_typing

    engine.seed_sequence([parse_action({"action": "type", "text": "a", "delay": 10})])
    assert not engine.allows_typing

    engine.seed_text("b")
    assert engine.allows_typing
