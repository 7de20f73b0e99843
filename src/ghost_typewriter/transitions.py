"""Page-turn and history-navigation state machine.

States: ``cinematicIntro -> normal`` once per page becoming current, and
``normal <-> turning`` guarded by ``in_progress`` so that only one
transition is ever in flight.

A page turn runs: end-of-page cue, scroll to top, background fetch, new
page, slide. History navigation skips straight to the slide.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from ghost_typewriter.clock import Clock, TimerGroup
from ghost_typewriter.models import EngineConfig, PageSnapshot, PageTransitionState

logger = logging.getLogger(__name__)

SLIDE_LEFT = "left"  # forward
SLIDE_RIGHT = "right"  # backward


class PageTransitionEngine:
    """Coordinates animation phases, asset fetch and page creation."""

    def __init__(
        self,
        clock: Clock,
        config: EngineConfig,
        on_event: Callable[[str, dict], None] | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self.config = config
        self.timers = TimerGroup(clock)
        self.state = PageTransitionState()
        self.on_event = on_event
        self.on_change = on_change
        self._intro_generation = 0

    @property
    def in_progress(self) -> bool:
        return self.state.in_progress

    @property
    def mode(self) -> str:
        return self.state.mode

    # -------------------------------------------------------------------------
    # Intro
    # -------------------------------------------------------------------------

    def begin_intro(self) -> None:
        """Play the intro for the page that just became current."""
        self._intro_generation += 1
        generation = self._intro_generation
        self.state.mode = "cinematicIntro"
        self._notify()
        self.timers.call_later(
            self.config.intro_duration_ms, lambda: self._end_intro(generation)
        )

    def _end_intro(self, generation: int) -> None:
        if generation != self._intro_generation:
            return
        self.state.mode = "normal"
        self._notify()

    # -------------------------------------------------------------------------
    # Page turn
    # -------------------------------------------------------------------------

    def begin_page_turn(
        self,
        page_text: str,
        current: PageSnapshot,
        fetch_background: Callable[[str, Callable[[str | None], None]], None],
        create_page: Callable[[str], PageSnapshot],
        on_complete: Callable[[int], None],
    ) -> bool:
        """Turn to a new blank page.

        Args:
            page_text: Accumulated text of the page being finished
            current: Snapshot of the page being finished
            fetch_background: Starts the image request; calls back with a
                URL or None
            create_page: Appends the new page with the given background,
                makes it current and returns its snapshot
            on_complete: Called with the new index once the slide ends

        Returns:
            False if another transition is already in flight
        """
        if self.state.in_progress:
            logger.debug("Page turn ignored: transition in progress")
            return False

        self.state.in_progress = True
        self._emit("end_of_page", {"index": current.index})
        logger.info("Turning page %d", current.index)

        def _scrolled() -> None:
            fetch_background(page_text, _fetched)

        def _fetched(url: str | None) -> None:
            if not self.state.in_progress:
                return
            background = url or self.config.default_background
            new_page = create_page(background)
            self.state.scroll_progress = 0.0
            self._slide(current, new_page, SLIDE_LEFT, lambda: on_complete(new_page.index))

        self._animate(self.config.scroll_duration_ms, self._set_scroll, _scrolled)
        return True

    # -------------------------------------------------------------------------
    # History navigation
    # -------------------------------------------------------------------------

    def begin_navigation(
        self,
        current: PageSnapshot,
        target: PageSnapshot,
        on_complete: Callable[[int], None],
    ) -> bool:
        """Slide to an existing page.

        Returns:
            False if another transition is already in flight
        """
        if self.state.in_progress:
            logger.debug("Navigation ignored: transition in progress")
            return False

        self.state.in_progress = True
        direction = SLIDE_LEFT if target.index > current.index else SLIDE_RIGHT
        logger.info("Navigating from page %d to %d", current.index, target.index)
        self._slide(current, target, direction, lambda: on_complete(target.index))
        return True

    # -------------------------------------------------------------------------
    # Animation
    # -------------------------------------------------------------------------

    def cancel(self) -> None:
        self.timers.cancel_all()

    def _slide(
        self,
        prev: PageSnapshot,
        nxt: PageSnapshot,
        direction: str,
        on_done: Callable[[], None],
    ) -> None:
        state = self.state
        state.sliding = True
        state.slide_dir = direction
        state.slide_x = 0.0
        state.prev_snapshot = prev
        state.next_snapshot = nxt
        self._notify()

        def _finished() -> None:
            state.sliding = False
            state.slide_x = 0.0
            state.prev_snapshot = None
            state.next_snapshot = None
            state.in_progress = False
            on_done()

        self._animate(self.config.slide_duration_ms, self._set_slide, _finished)

    def _animate(
        self,
        duration_ms: float,
        on_progress: Callable[[float], None],
        on_done: Callable[[], None],
    ) -> None:
        """Drive progress from 0 to 1 on frame ticks, then call on_done."""
        frame_ms = self.config.animation_frame_ms
        frames = max(1, math.ceil(duration_ms / frame_ms))
        step_ms = duration_ms / frames

        def _frame(n: int) -> None:
            on_progress(n / frames)
            if n >= frames:
                on_done()
            else:
                self.timers.call_later(step_ms, lambda: _frame(n + 1))

        self.timers.call_later(step_ms, lambda: _frame(1))

    def _set_scroll(self, progress: float) -> None:
        self.state.scroll_progress = progress
        self._notify()

    def _set_slide(self, progress: float) -> None:
        self.state.slide_x = progress * 100.0
        self._notify()

    def _emit(self, name: str, payload: dict) -> None:
        if self.on_event is not None:
            self.on_event(name, payload)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
