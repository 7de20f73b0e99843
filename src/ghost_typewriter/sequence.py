"""Scripted ghost-text sequences (type / pause / delete / fade / retype)."""

from __future__ import annotations

import logging
from typing import Any, Callable

from ghost_typewriter.clock import TimerGroup
from ghost_typewriter.models import Action, ActionSequenceState, FadeState

logger = logging.getLogger(__name__)

VERBS = ("type", "retype", "delete", "pause", "fade")


def parse_action(raw: Any) -> Action:
    """Build an Action from a wire dict.

    Anything malformed comes back with valid=False so that the processor
    can skip it without stopping the sequence.
    """
    if not isinstance(raw, dict):
        return Action(action="unknown", valid=False)

    verb = raw.get("action")
    delay = raw.get("delay", 0)
    style = raw.get("style") if isinstance(raw.get("style"), dict) else {}
    if not isinstance(verb, str):
        verb = "unknown"
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        return Action(action=verb, valid=False)

    action = Action(action=verb, delay=delay, style=style)
    if verb in ("type", "retype"):
        text = raw.get("text")
        action.text = text
        action.valid = isinstance(text, str)
    elif verb == "delete":
        count = raw.get("count")
        action.count = count
        action.valid = isinstance(count, int) and not isinstance(count, bool) and count >= 0
    elif verb == "fade":
        to_text = raw.get("to_text")
        action.to_text = to_text
        action.phase = raw.get("phase")
        action.valid = isinstance(to_text, str)
    elif verb != "pause":
        action.valid = False
    return action


def build_sequence(payload: dict) -> list[Action]:
    """Concatenate the writing and fade scripts of a structured reply."""
    writing = payload.get("writing_sequence")
    if writing is None:
        # Key as spelled by some backend releases
        writing = payload.get("writing_seqeunce")
    fade = payload.get("fade_sequence")
    raw_actions = []
    for part in (writing, fade):
        if isinstance(part, list):
            raw_actions.extend(part)
    return [parse_action(raw) for raw in raw_actions]


def is_sequence_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and any(
        key in payload
        for key in ("writing_sequence", "writing_seqeunce", "fade_sequence")
    )


class ActionSequenceProcessor:
    """Runs one action at a time, advancing after each action's delay."""

    def __init__(
        self,
        timers: TimerGroup,
        on_change: Callable[[], None] | None = None,
        on_complete: Callable[[str], None] | None = None,
    ):
        self.timers = timers
        self.on_change = on_change
        self.on_complete = on_complete
        self.state = ActionSequenceState()
        self.running = False

    def start(self, actions: list[Action]) -> None:
        self.state = ActionSequenceState(actions=list(actions))
        self.running = True
        if self.state.actions:
            self._begin_current()
        else:
            self.timers.call_later(0, self._begin_current)

    def cancel(self) -> None:
        self.running = False
        self.timers.cancel_all()

    @property
    def current_action(self) -> Action | None:
        if not self.running or self.state.cursor >= len(self.state.actions):
            return None
        return self.state.actions[self.state.cursor]

    @property
    def allows_typing(self) -> bool:
        """Keystrokes are only accepted while the script is pausing."""
        action = self.current_action
        return action is not None and action.valid and action.action == "pause"

    def active_text(self) -> str:
        fade = self.state.fade_state
        if fade is not None and fade.is_active:
            return fade.to_text
        return self.state.ghost_buffer

    def _begin_current(self) -> None:
        if not self.running:
            return
        state = self.state
        if state.cursor >= len(state.actions):
            self._complete()
            return

        action = state.actions[state.cursor]
        if state.fade_state is not None and action.action != "fade":
            state.fade_state = None

        if not action.valid:
            logger.warning("Skipping malformed action in sequence: %r", action)
            self.timers.call_later(0, self._advance)
            return

        if action.action in ("type", "retype"):
            state.ghost_buffer += action.text
        elif action.action == "delete":
            if action.count:
                state.ghost_buffer = state.ghost_buffer[: -action.count]
        elif action.action == "fade":
            state.fade_state = FadeState(
                is_active=True, to_text=action.to_text, phase=action.phase
            )

        self._notify()
        self.timers.call_later(action.delay, self._advance)

    def _advance(self) -> None:
        if not self.running:
            return
        self.state.cursor += 1
        self._begin_current()

    def _complete(self) -> None:
        self.running = False
        self.state.fade_state = None
        final_text = self.state.ghost_buffer
        logger.info("Action sequence complete (%d actions)", len(self.state.actions))
        if self.on_complete is not None:
            self.on_complete(final_text)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
