"""Story backend abstraction: continuation decision, reply and image oracles."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import openai

from ghost_typewriter.models import Action, EngineConfig
from ghost_typewriter.sequence import build_sequence, is_sequence_payload

logger = logging.getLogger(__name__)


@dataclass
class ScriptedReply:
    """A reply delivered as a timed action sequence."""

    actions: list[Action]
    metadata: dict = field(default_factory=dict)


Reply = str | ScriptedReply


def parse_reply(payload: Any) -> Reply | None:
    """Turn a reply payload into plain text or a scripted sequence.

    Accepts ``{"content": ...}``, ``{"metadata", "writing_sequence",
    "fade_sequence"}`` or either of those wrapped in ``{"data": ...}``.
    """
    if isinstance(payload, str):
        return payload if payload.strip() else None
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("data"), dict):
        payload = payload["data"]

    if is_sequence_payload(payload):
        actions = build_sequence(payload)
        if not actions:
            return None
        metadata = payload.get("metadata")
        return ScriptedReply(actions=actions, metadata=metadata if isinstance(metadata, dict) else {})

    content = payload.get("content")
    if isinstance(content, str) and content.strip():
        return content
    return None


class StoryBackend(Protocol):
    """Protocol for the three oracles the session consults."""

    def should_continue(
        self,
        full_text: str,
        recent_addition: str,
        pause_seconds: float,
        last_ghostwriter_word_count: int = 0,
    ) -> bool:
        """Decide whether a continuation should be generated now."""
        ...

    def reply(self, full_text: str, session_id: str | None = None) -> Reply | None:
        """Generate a continuation of full_text."""
        ...

    def next_background(self, accumulated_text: str, session_id: str | None = None) -> str | None:
        """Pick the background image of the next page."""
        ...

    def close(self) -> None:
        """Release any held resources."""
        ...


class HttpBackend:
    """Story server reached over HTTP."""

    def __init__(
        self,
        server_url: str = "http://localhost:5001",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.client = httpx.Client(
            base_url=server_url.rstrip("/"), timeout=timeout, transport=transport
        )

    def _post(self, path: str, body: dict) -> dict | None:
        try:
            response = self.client.post(path, json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning("Request to %s failed: %s", path, e)
            return None
        except ValueError as e:
            logger.warning("Invalid JSON from %s: %s", path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Unexpected payload from %s: %r", path, data)
            return None
        return data

    def should_continue(
        self,
        full_text: str,
        recent_addition: str,
        pause_seconds: float,
        last_ghostwriter_word_count: int = 0,
    ) -> bool:
        if not recent_addition:
            return False
        data = self._post(
            "/api/shouldGenerateContinuation",
            {
                "currentText": full_text,
                "latestAddition": recent_addition,
                "latestPauseSeconds": pause_seconds,
                "lastGhostwriterWordCount": last_ghostwriter_word_count,
            },
        )
        if data is None:
            return False
        if isinstance(data.get("data"), dict):
            data = data["data"]
        return bool(data.get("shouldGenerate"))

    def reply(self, full_text: str, session_id: str | None = None) -> Reply | None:
        if not full_text:
            return None
        data = self._post(
            "/api/send_typewriter_text",
            {"sessionId": session_id, "message": full_text},
        )
        return parse_reply(data)

    def next_background(self, accumulated_text: str, session_id: str | None = None) -> str | None:
        data = self._post(
            "/api/next_film_image",
            {"sessionId": session_id, "text": accumulated_text},
        )
        if data is None:
            return None
        if isinstance(data.get("data"), dict):
            data = data["data"]
        url = data.get("image_url") or data.get("imageUrl")
        return url if isinstance(url, str) and url else None

    def close(self) -> None:
        self.client.close()


class OpenAIBackend:
    """Continuations written by an OpenAI chat model.

    There is no image oracle here; pages fall back to the default
    background.
    """

    DECIDE_PROMPT = (
        "You are a ghost haunting a typewriter. Given a story being typed and "
        "the words just added, answer only 'yes' if the ghost should now "
        "continue the writer's sentence, or 'no' if it should stay silent."
    )
    REPLY_PROMPT = (
        "You are a ghost haunting a typewriter. Continue the writer's text with "
        "one or two short, eerie sentences. Return only the continuation."
    )

    def __init__(self, model: str = "gpt-4o-mini", client: Any = None):
        self.model = model
        self.client = client or openai.OpenAI()

    def _complete(self, system: str, user: str, max_tokens: int) -> str | None:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            logger.warning("OpenAI request failed: %s", e)
            return None
        return response.choices[0].message.content

    def should_continue(
        self,
        full_text: str,
        recent_addition: str,
        pause_seconds: float,
        last_ghostwriter_word_count: int = 0,
    ) -> bool:
        if not recent_addition:
            return False
        answer = self._complete(
            self.DECIDE_PROMPT,
            f"Story so far:\n{full_text}\n\nJust added:\n{recent_addition}\n\n"
            f"Writer paused for {pause_seconds:.1f} seconds. "
            f"The ghost last wrote {last_ghostwriter_word_count} words.",
            max_tokens=3,
        )
        return bool(answer) and answer.strip().lower().startswith("yes")

    def reply(self, full_text: str, session_id: str | None = None) -> Reply | None:
        if not full_text:
            return None
        return parse_reply(self._complete(self.REPLY_PROMPT, full_text, max_tokens=80))

    def next_background(self, accumulated_text: str, session_id: str | None = None) -> str | None:
        return None

    def close(self) -> None:
        self.client.close()


class ScriptedBackend:
    """Deterministic, dependency-free backend.

    Intended for tests and demos. Each oracle pops the next queued answer;
    queued exceptions are raised to simulate network failures. Every call
    is recorded in ``calls``.
    """

    def __init__(
        self,
        decisions: list | None = None,
        replies: list | None = None,
        backgrounds: list | None = None,
        default_decision: bool = False,
    ):
        self.decisions = deque(decisions or [])
        self.replies = deque(replies or [])
        self.backgrounds = deque(backgrounds or [])
        self.default_decision = default_decision
        self.calls: list[tuple[str, tuple]] = []

    def _next(self, queue: deque, default: Any) -> Any:
        if not queue:
            return default
        item = queue.popleft()
        if isinstance(item, BaseException):
            raise item
        return item

    def should_continue(
        self,
        full_text: str,
        recent_addition: str,
        pause_seconds: float,
        last_ghostwriter_word_count: int = 0,
    ) -> bool:
        self.calls.append(
            ("should_continue", (full_text, recent_addition, pause_seconds, last_ghostwriter_word_count))
        )
        return bool(self._next(self.decisions, self.default_decision))

    def reply(self, full_text: str, session_id: str | None = None) -> Reply | None:
        self.calls.append(("reply", (full_text, session_id)))
        item = self._next(self.replies, None)
        if isinstance(item, ScriptedReply):
            return item
        return parse_reply(item)

    def next_background(self, accumulated_text: str, session_id: str | None = None) -> str | None:
        self.calls.append(("next_background", (accumulated_text, session_id)))
        return self._next(self.backgrounds, None)

    def calls_to(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    def close(self) -> None:
        pass


def create_backend(config: EngineConfig) -> StoryBackend:
    """Build the backend named by config.backend."""
    if config.backend == "http":
        return HttpBackend(config.server_url, timeout=config.request_timeout)
    if config.backend == "openai":
        return OpenAIBackend(model=config.openai_model)
    return ScriptedBackend()
