"""Ghost Typewriter - typewriter animation, ghostwriting and pagination engine."""

from ghost_typewriter.models import (
    EngineConfig,
    Page,
    GhostWord,
    Action,
    SessionView,
)
from ghost_typewriter.clock import AsyncioClock, TimerGroup, VirtualClock
from ghost_typewriter.backends import (
    HttpBackend,
    OpenAIBackend,
    ScriptedBackend,
    ScriptedReply,
    create_backend,
)
from ghost_typewriter.session import TypewriterSession

__version__ = "0.1.0"

__all__ = [
    "TypewriterSession",
    "EngineConfig",
    "Page",
    "GhostWord",
    "Action",
    "SessionView",
    "VirtualClock",
    "AsyncioClock",
    "TimerGroup",
    "HttpBackend",
    "OpenAIBackend",
    "ScriptedBackend",
    "ScriptedReply",
    "create_backend",
]
