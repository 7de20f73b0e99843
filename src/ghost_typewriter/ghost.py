"""Ghost text: AI suggestions shown after the committed page text.

Two delivery strategies share one interface (``active_text``, ``commit``,
``discard``) so commit and line-limit rules apply regardless of which
reply shape the backend returned:

- DripGhost reveals a plain string one character per tick, then lets its
  words erode away one at a time.
- SequenceGhost plays a scripted action sequence.

GhostTextEngine holds at most one of them at a time.
"""

from __future__ import annotations

import itertools
import logging
import random
import re
from typing import Callable

from ghost_typewriter.clock import Clock, TimerGroup
from ghost_typewriter.models import Action, EngineConfig, GhostResponse, GhostState, GhostWord
from ghost_typewriter.sequence import ActionSequenceProcessor

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"(\s*)(\S+)")


def split_words(content: str) -> tuple[list[GhostWord], str]:
    """Tokenise a suggestion into words, keeping the whitespace around them.

    Returns:
        The words (each with its leading whitespace) and the trailing
        whitespace of content
    """
    words = []
    end = 0
    for i, match in enumerate(_WORD_RE.finditer(content)):
        words.append(GhostWord(id=i, text=match.group(2), leading=match.group(1)))
        end = match.end()
    return words, content[end:]


class DripGhost:
    """Character-drip reveal followed by word erosion."""

    kind = "drip"

    def __init__(
        self,
        clock: Clock,
        config: EngineConfig,
        rng: random.Random,
        on_change: Callable[[], None] | None = None,
        on_char: Callable[[str], None] | None = None,
        on_exhausted: Callable[[DripGhost], None] | None = None,
    ):
        self.config = config
        self.rng = rng
        self.timers = TimerGroup(clock)
        self.state = GhostState()
        self.on_change = on_change
        self.on_char = on_char
        self.on_exhausted = on_exhausted
        self._response_ids = itertools.count(1)
        self._dripping = False

    def seed(self, text: str) -> None:
        """Queue text for reveal as a new response."""
        state = self.state
        state.responses.append(GhostResponse(id=next(self._response_ids)))
        state.drip_queue.extend(text)
        state.is_stable = False
        state.words = []
        state.tail = ""
        if not self._dripping:
            self._dripping = True
            self.timers.call_later(self.config.drip_interval_ms, self._drip_tick)

    def active_text(self) -> str:
        state = self.state
        if not state.is_stable:
            return "".join(r.content for r in state.responses)
        visible = "".join(
            word.leading + word.text
            for word in state.words
            if word.status != "erased"
        )
        return visible + state.tail

    def commit(self) -> str:
        text = self.active_text()
        self.cancel()
        return text

    def discard(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        self._dripping = False
        self.timers.cancel_all()

    def _drip_tick(self) -> None:
        state = self.state
        if state.drip_queue:
            char = state.drip_queue.pop(0)
            state.responses[-1].content += char
            self._refresh()
            if self.on_char is not None:
                self.on_char(char)
            self.timers.call_later(self.config.drip_interval_ms, self._drip_tick)
            return

        self._dripping = False
        if state.responses and not state.is_stable:
            self._stabilise()

    def _stabilise(self) -> None:
        state = self.state
        content = "".join(r.content for r in state.responses)
        state.words, state.tail = split_words(content)
        state.is_stable = True
        self._refresh()
        if not state.words:
            # Nothing to erode
            self.cancel()
            if self.on_exhausted is not None:
                self.on_exhausted(self)
            return
        self.timers.call_later(self.config.erosion_interval_ms, self._erode_tick)

    def _erode_tick(self) -> None:
        visible = [word for word in self.state.words if word.status == "visible"]
        if not visible:
            return
        word = self.rng.choice(visible)
        word.status = "eroding"
        self._refresh()
        self.timers.call_later(self.config.erosion_delay_ms, lambda: self._erase(word))
        if len(visible) > 1:
            self.timers.call_later(self.config.erosion_interval_ms, self._erode_tick)

    def _erase(self, word: GhostWord) -> None:
        if word.status != "eroding":
            return
        word.status = "erased"
        self._refresh()
        if all(w.status == "erased" for w in self.state.words):
            self.cancel()
            if self.on_exhausted is not None:
                self.on_exhausted(self)

    def _refresh(self) -> None:
        self.state.display_text = self.active_text()
        if self.on_change is not None:
            self.on_change()


class SequenceGhost:
    """Ghost text driven by a scripted action sequence."""

    kind = "sequence"

    def __init__(
        self,
        clock: Clock,
        metadata: dict | None = None,
        on_change: Callable[[], None] | None = None,
        on_complete: Callable[[SequenceGhost, str], None] | None = None,
    ):
        self.metadata = metadata or {}
        self.timers = TimerGroup(clock)
        self.on_complete = on_complete
        self.processor = ActionSequenceProcessor(
            self.timers, on_change=on_change, on_complete=self._completed
        )

    def start(self, actions: list[Action]) -> None:
        self.processor.start(actions)

    @property
    def allows_typing(self) -> bool:
        return self.processor.allows_typing

    def active_text(self) -> str:
        return self.processor.active_text()

    def commit(self) -> str:
        text = self.active_text()
        self.cancel()
        return text

    def discard(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        self.processor.cancel()

    def _completed(self, final_text: str) -> None:
        if self.on_complete is not None:
            self.on_complete(self, final_text)


class GhostTextEngine:
    """Single slot holding the current ghost, whichever strategy it uses."""

    def __init__(
        self,
        clock: Clock,
        config: EngineConfig,
        rng: random.Random,
        on_change: Callable[[], None] | None = None,
        on_char: Callable[[str], None] | None = None,
        on_exhausted: Callable[[], None] | None = None,
        on_sequence_complete: Callable[[str], None] | None = None,
    ):
        self.clock = clock
        self.config = config
        self.rng = rng
        self.on_change = on_change
        self.on_char = on_char
        self.on_exhausted = on_exhausted
        self.on_sequence_complete = on_sequence_complete
        self.current: DripGhost | SequenceGhost | None = None

    @property
    def kind(self) -> str | None:
        return self.current.kind if self.current is not None else None

    @property
    def has_content(self) -> bool:
        return self.current is not None

    @property
    def allows_typing(self) -> bool:
        if isinstance(self.current, SequenceGhost):
            return self.current.allows_typing
        return True

    def seed_text(self, text: str) -> DripGhost:
        """Replace the current ghost with a drip reveal of text."""
        self.discard()
        ghost = DripGhost(
            self.clock,
            self.config,
            self.rng,
            on_change=self._changed,
            on_char=self.on_char,
            on_exhausted=self._exhausted,
        )
        self.current = ghost
        ghost.seed(text)
        return ghost

    def seed_sequence(self, actions: list[Action], metadata: dict | None = None) -> SequenceGhost:
        """Replace the current ghost with a scripted sequence."""
        self.discard()
        ghost = SequenceGhost(
            self.clock,
            metadata=metadata,
            on_change=self._changed,
            on_complete=self._sequence_completed,
        )
        self.current = ghost
        ghost.start(actions)
        return ghost

    def active_text(self) -> str:
        if self.current is None:
            return ""
        return self.current.active_text()

    def commit(self) -> str:
        """Take the ghost text exactly as rendered and clear the slot."""
        if self.current is None:
            return ""
        ghost, self.current = self.current, None
        return ghost.commit()

    def discard(self) -> None:
        if self.current is None:
            return
        ghost, self.current = self.current, None
        ghost.discard()

    def snapshot(self) -> dict:
        """Presentation details of the current ghost."""
        ghost = self.current
        if isinstance(ghost, DripGhost):
            return {
                "words": tuple((w.text, w.status) for w in ghost.state.words),
                "style": None,
                "fade_phase": None,
            }
        if isinstance(ghost, SequenceGhost):
            fade = ghost.processor.state.fade_state
            return {
                "words": (),
                "style": dict(ghost.metadata) or None,
                "fade_phase": fade.phase if fade is not None else None,
            }
        return {"words": (), "style": None, "fade_phase": None}

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _exhausted(self, ghost: DripGhost) -> None:
        if ghost is not self.current:
            return
        self.current = None
        logger.debug("Ghost suggestion fully eroded")
        if self.on_exhausted is not None:
            self.on_exhausted()

    def _sequence_completed(self, ghost: SequenceGhost, final_text: str) -> None:
        if ghost is not self.current:
            return
        self.current = None
        if self.on_sequence_complete is not None:
            self.on_sequence_complete(final_text)
