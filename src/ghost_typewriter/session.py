"""Typewriter session - ties input, ghost text, pages and transitions together."""

from __future__ import annotations

import logging
import random
from typing import Callable

from ghost_typewriter.backends import Reply, ScriptedReply, StoryBackend, create_backend
from ghost_typewriter.buffer import InputBuffer
from ghost_typewriter.clock import AsyncioClock, Clock, TimerGroup
from ghost_typewriter.ghost import GhostTextEngine
from ghost_typewriter.ghostwriter import GhostwriterScheduler
from ghost_typewriter.models import EngineConfig, PageSnapshot, SessionView
from ghost_typewriter.pages import PageStore
from ghost_typewriter.text import count_words
from ghost_typewriter.transitions import PageTransitionEngine

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict], None]


class TypewriterSession:
    """Owns every piece of typewriter state and routes events between them.

    Without a clock the session runs on an AsyncioClock, which has to be
    created inside a running event loop; pass a VirtualClock otherwise.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        backend: StoryBackend | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or EngineConfig()
        self.clock = clock or AsyncioClock()
        self.backend = backend or create_backend(self.config)
        self.rng = rng or random.Random(self.config.random_seed)

        self.pages = PageStore(self.config.max_lines, self.config.default_background)
        self.buffer = InputBuffer()
        self.ghost = GhostTextEngine(
            self.clock,
            self.config,
            self.rng,
            on_change=self._view_changed,
            on_char=lambda char: self._emit("ghost_key", {"key": char}),
            on_exhausted=self._ghost_exhausted,
            on_sequence_complete=self._sequence_complete,
        )
        self.transitions = PageTransitionEngine(
            self.clock,
            self.config,
            on_event=self._emit,
            on_change=self._view_changed,
        )
        self.ghostwriter = GhostwriterScheduler(self.config, self.clock, self.backend)

        self._listeners: list[Listener] = []
        self._page_timers: TimerGroup | None = None
        self._page_token = 0
        self.started = False
        self.closed = False

    def start(self) -> None:
        """Make page 0 current and start the page timers."""
        if self.started:
            return
        self.started = True
        self._enter_page(0)

    def close(self) -> None:
        """Stop every timer and release the backend."""
        if self.closed:
            return
        self.closed = True
        self._suspend_page()
        self.transitions.cancel()
        self.backend.close()

    def __enter__(self) -> TypewriterSession:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for (event_name, payload); returns an unsubscribe."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Flags
    # -------------------------------------------------------------------------

    @property
    def show_cursor(self) -> bool:
        return (
            self.started
            and not self.closed
            and self._page_timers is not None
            and not self.transitions.in_progress
            and self.transitions.mode == "normal"
            and self.pages.is_last
        )

    @property
    def ghost_text(self) -> str:
        """Ghost text as shown: clipped to the lines left on the page."""
        return self.pages.clip(self.ghost.active_text())

    @property
    def typing_allowed(self) -> bool:
        if not self.show_cursor:
            return False
        if self.config.lock_input_during_sequence:
            return self.ghost.allows_typing
        return True

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def press_key(self, char: str) -> bool:
        """Handle one keystroke.

        Returns:
            True if the character was queued; False if it was blocked or
            started a page turn instead
        """
        if not isinstance(char, str) or len(char) != 1:
            raise ValueError(f"Invalid key: {char!r}")
        if not self.typing_allowed:
            self._emit("blocked_input", {"key": char})
            return False

        self.ghostwriter.note_user_input()
        if self.ghost.has_content:
            self._commit_ghost()

        page = self.pages.current
        if self.pages.would_overflow(
            page.text, self.ghost_text, self.buffer.pending_text, char
        ):
            logger.info("Page %d is full", page.index)
            self._turn_page()
            return False

        self.buffer.enqueue(char)
        self._emit("key", {"key": char})
        return True

    def type_text(self, text: str) -> int:
        """Press each character of text in order; returns how many were queued."""
        return sum(1 for char in text if self.press_key(char))

    def backspace(self) -> bool:
        """Cancel a pending key, dismiss the ghost, or delete committed text."""
        if not self.show_cursor:
            self._emit("blocked_input", {"key": "\b"})
            return False

        self.ghostwriter.note_user_input()
        if self.buffer:
            self.buffer.cancel_last()
            self._view_changed()
            return True
        if self.ghost.has_content:
            self._discard_ghost()
            return True
        removed = self.pages.delete_last_char()
        if removed is None:
            return False
        self._view_changed()
        return True

    # -------------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------------

    def turn_page(self) -> bool:
        """Pull the lever: turn to a new page before this one is full."""
        if not self.typing_allowed:
            return False
        if not self.pages.current.text and not self.buffer:
            return False
        return self._turn_page()

    def prev_page(self) -> bool:
        if self.pages.current_index == 0:
            return False
        return self.goto_page(self.pages.current_index - 1)

    def next_page(self) -> bool:
        if self.pages.is_last:
            return False
        return self.goto_page(self.pages.current_index + 1)

    def goto_page(self, index: int) -> bool:
        """Slide to an existing page.

        Returns:
            False if a transition is in flight or index is already current
        """
        if not 0 <= index < len(self.pages):
            raise ValueError(f"Page not found: {index}")
        if not self.started or self.closed or self.transitions.in_progress:
            return False
        if index == self.pages.current_index:
            return False

        self._suspend_page()
        return self.transitions.begin_navigation(
            self.pages.snapshot(self.pages.current_index),
            self.pages.snapshot(index),
            self._enter_page,
        )

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    def view(self) -> SessionView:
        transition = self.transitions.state
        ghost = self.ghost.snapshot()
        page = self.pages.current
        return SessionView(
            page_text=page.text,
            ghost_text=self.ghost_text,
            ghost_kind=self.ghost.kind,
            ghost_words=ghost["words"],
            ghost_style=ghost["style"],
            fade_phase=ghost["fade_phase"],
            show_cursor=self.show_cursor,
            typing_allowed=self.typing_allowed,
            mode=transition.mode,
            sliding=transition.sliding,
            slide_x=transition.slide_x,
            slide_dir=transition.slide_dir,
            scroll_progress=transition.scroll_progress,
            prev_snapshot=transition.prev_snapshot,
            next_snapshot=transition.next_snapshot,
            current_index=self.pages.current_index,
            page_count=len(self.pages),
            page_label=self.pages.page_label(),
            background=page.background_ref,
        )

    # -------------------------------------------------------------------------
    # Page session lifecycle
    # -------------------------------------------------------------------------

    def _enter_page(self, index: int) -> None:
        """Reset every per-page machine at once for the page at index."""
        if self._page_timers is not None:
            self._page_timers.cancel_all()
        self.pages.goto(index)
        self.buffer.clear()
        self.ghost.discard()
        self.ghostwriter.reset(len(self.pages.current.text))

        self._page_token += 1
        timers = TimerGroup(self.clock)
        self._page_timers = timers
        timers.call_every(self.config.typing_interval_ms, self._drain_tick)
        timers.call_every(self.config.poll_interval_ms, self._poll_tick)
        self.transitions.begin_intro()

        logger.info("Page %d is current (%s)", index, self.pages.page_label())
        self._emit("page_changed", {"index": index})
        self._view_changed()

    def _suspend_page(self) -> None:
        """Stop the current page session before leaving it."""
        while self.buffer:
            self._commit_char(self.buffer.drain_one())
        self.ghost.discard()
        if self._page_timers is not None:
            self._page_timers.cancel_all()
            self._page_timers = None
        self._page_token += 1

    def _turn_page(self) -> bool:
        if self.transitions.in_progress:
            return False
        self._suspend_page()
        page = self.pages.current
        return self.transitions.begin_page_turn(
            page.text,
            self.pages.snapshot(page.index),
            self._fetch_background,
            self._create_page,
            self._enter_page,
        )

    def _fetch_background(self, page_text: str, callback: Callable[[str | None], None]) -> None:
        session_id = self.config.session_id

        def _done(url: str | None, error: BaseException | None) -> None:
            if error is not None:
                logger.warning("Background request failed: %s", error)
                url = None
            callback(url)

        self.transitions.timers.submit(
            lambda: self.backend.next_background(page_text, session_id), _done
        )

    def _create_page(self, background: str) -> PageSnapshot:
        page = self.pages.append(background)
        self.pages.goto(page.index)
        self._emit("page_turned", {"index": page.index, "background": background})
        return self.pages.snapshot(page.index)

    # -------------------------------------------------------------------------
    # Timer callbacks
    # -------------------------------------------------------------------------

    def _drain_tick(self) -> None:
        char = self.buffer.drain_one()
        if char is not None:
            self._commit_char(char)

    def _commit_char(self, char: str) -> None:
        self.pages.append_char(char)
        if char == "\n":
            self._emit("carriage_return", {"line": self.pages.current.text.count("\n")})
        self._view_changed()

    def _poll_tick(self) -> None:
        if self.buffer or not self.show_cursor:
            return
        token = self._page_token
        self.ghostwriter.poll(
            self.pages.current.text,
            self._page_timers,
            lambda reply: self._deliver(token, reply),
        )

    def _deliver(self, token: int, reply: Reply) -> None:
        if token != self._page_token:
            logger.warning("Dropping continuation for a page that is no longer current")
            return
        if isinstance(reply, ScriptedReply):
            written = "".join(a.text or "" for a in reply.actions if a.action in ("type", "retype"))
            self.ghostwriter.mark_queued(count_words(written))
            self.ghost.seed_sequence(reply.actions, reply.metadata)
            kind = "sequence"
        else:
            self.ghostwriter.mark_queued(count_words(reply))
            self.ghost.seed_text(reply)
            kind = "drip"
        logger.info("Seeded %s suggestion on page %d", kind, self.pages.current_index)
        self._emit("suggestion", {"kind": kind})
        self._view_changed()

    # -------------------------------------------------------------------------
    # Ghost lifecycle
    # -------------------------------------------------------------------------

    def _commit_ghost(self) -> None:
        text = self.ghost.commit()
        merged = self.pages.merge(text)
        self.ghostwriter.release(len(merged))
        self._view_changed()

    def _discard_ghost(self) -> None:
        self.ghost.discard()
        self.ghostwriter.release(len(self.pages.current.text))
        self._view_changed()

    def _ghost_exhausted(self) -> None:
        self.ghostwriter.release(len(self.pages.current.text))
        self._view_changed()

    def _sequence_complete(self, final_text: str) -> None:
        if final_text:
            merged = self.pages.merge(final_text)
        else:
            merged = self.pages.current.text
        self.ghostwriter.release(len(merged))
        self._emit("sequence_complete", {"text": final_text})
        self._view_changed()

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _emit(self, name: str, payload: dict) -> None:
        for listener in list(self._listeners):
            listener(name, payload)

    def _view_changed(self) -> None:
        self._emit("view_changed", {})
