"""Pytest fixtures for Ghost Typewriter tests."""

import pytest
from ghost_typewriter import EngineConfig, ScriptedBackend, TypewriterSession, VirtualClock


@pytest.fixture
def config():
    """Compressed timings so multi-stage animations finish in a few ticks."""
    return EngineConfig(
        max_lines=3,
        typing_interval_ms=10,
        drip_interval_ms=5,
        erosion_interval_ms=50,
        erosion_delay_ms=20,
        poll_interval_ms=100,
        inactivity_threshold_ms=0,
        min_words_for_request=2,
        intro_duration_ms=10,
        scroll_duration_ms=30,
        slide_duration_ms=40,
        animation_frame_ms=10,
        default_background="/films/default.png",
        session_id="test-session",
        random_seed=7,
    )


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def backend():
    return ScriptedBackend()


@pytest.fixture
def session(config, clock, backend):
    """A started session with the opening intro already played."""
    session = TypewriterSession(config, clock=clock, backend=backend)
    session.start()
    clock.advance(config.intro_duration_ms)
    yield session
    session.close()


@pytest.fixture
def events(session):
    """Every event the session emits, except view refreshes."""
    received = []

    def listener(name, payload):
        if name != "view_changed":
            received.append((name, payload))

    session.subscribe(listener)
    return received


def type_and_drain(session, clock, text):
    """Type text and let the drain tick commit every queued key."""
    queued = session.type_text(text)
    clock.advance(len(text) * session.config.typing_interval_ms)
    return queued


# Scroll, slide and the new page's intro
def turn_duration(config):
    return config.scroll_duration_ms + config.slide_duration_ms + config.intro_duration_ms
