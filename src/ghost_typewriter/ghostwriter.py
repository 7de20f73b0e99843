"""Decides when to ask the backend for a continuation."""

from __future__ import annotations

import logging
from typing import Callable

from ghost_typewriter.backends import Reply, StoryBackend
from ghost_typewriter.clock import Clock, TimerGroup
from ghost_typewriter.models import EngineConfig, GhostwriterState
from ghost_typewriter.text import count_words

logger = logging.getLogger(__name__)


class GhostwriterScheduler:
    """Watches page growth and user inactivity, debounced by response_queued."""

    def __init__(self, config: EngineConfig, clock: Clock, backend: StoryBackend):
        self.config = config
        self.clock = clock
        self.backend = backend
        self.state = GhostwriterState(last_user_input_time=clock.now())
        self.request_in_flight = False

    def reset(self, page_text_length: int = 0) -> None:
        """Start over for a new page session."""
        self.state = GhostwriterState(
            last_user_input_time=self.clock.now(),
            last_generated_length=page_text_length,
        )
        self.request_in_flight = False

    def note_user_input(self) -> None:
        self.state.last_user_input_time = self.clock.now()

    def mark_queued(self, suggestion_words: int) -> None:
        """A suggestion has been seeded; hold further requests."""
        self.state.response_queued = True
        self.state.last_ghostwriter_word_count = suggestion_words

    def release(self, page_text_length: int) -> None:
        """The suggestion was committed, discarded or finished."""
        self.state.response_queued = False
        self.state.last_generated_length = page_text_length

    def delta(self, page_text: str) -> str:
        if self.state.last_generated_length > len(page_text):
            self.state.last_generated_length = len(page_text)
        return page_text[self.state.last_generated_length:]

    def idle_ms(self) -> float:
        return self.clock.now() - self.state.last_user_input_time

    def ready(self, page_text: str) -> bool:
        """True if a poll right now would issue a request."""
        if self.state.response_queued or self.request_in_flight:
            return False
        if self.idle_ms() < self.config.inactivity_threshold_ms:
            return False
        delta = self.delta(page_text)
        return bool(delta) and count_words(delta) >= self.config.min_words_for_request

    def poll(
        self,
        page_text: str,
        timers: TimerGroup,
        deliver: Callable[[Reply], None],
    ) -> bool:
        """Ask the backend for a continuation if the page warrants one.

        Args:
            page_text: Committed text of the current page
            timers: Timer group of the current page session; results
                arriving after it is cancelled are dropped
            deliver: Receives a non-empty reply

        Returns:
            True if a request was issued
        """
        if not self.ready(page_text):
            return False

        full_text = page_text
        delta = self.delta(page_text)
        pause_seconds = self.idle_ms() / 1000.0
        last_word_count = self.state.last_ghostwriter_word_count
        session_id = self.config.session_id
        self.request_in_flight = True
        logger.debug("Requesting continuation (%d new words)", count_words(delta))

        def _request() -> Reply | None:
            if not self.backend.should_continue(full_text, delta, pause_seconds, last_word_count):
                return None
            return self.backend.reply(full_text, session_id)

        def _finished(reply: Reply | None, error: BaseException | None) -> None:
            self.request_in_flight = False
            if error is not None:
                logger.warning("Continuation request failed: %s", error)
                return
            if reply:
                deliver(reply)

        timers.submit(_request, _finished)
        return True
