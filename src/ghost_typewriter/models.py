"""Data models for Ghost Typewriter."""

from dataclasses import dataclass, field

BACKENDS = ("scripted", "http", "openai")


@dataclass
class EngineConfig:
    """Configuration for TypewriterSession. All durations are milliseconds."""

    max_lines: int = 20
    typing_interval_ms: float = 100
    drip_interval_ms: float = 60
    erosion_interval_ms: float = 2500
    erosion_delay_ms: float = 900
    poll_interval_ms: float = 1000
    inactivity_threshold_ms: float = 2000
    min_words_for_request: int = 3
    intro_duration_ms: float = 1500
    scroll_duration_ms: float = 900
    slide_duration_ms: float = 1200
    animation_frame_ms: float = 16
    default_background: str = "/films/default_film.png"
    lock_input_during_sequence: bool = True
    backend: str = "scripted"  # "scripted" | "http" | "openai"
    server_url: str = "http://localhost:5001"
    request_timeout: float = 10.0
    openai_model: str = "gpt-4o-mini"  # if backend="openai"
    session_id: str | None = None
    random_seed: int | None = None

    def __post_init__(self) -> None:
        if self.max_lines < 1:
            raise ValueError(f"max_lines must be at least 1: {self.max_lines}")
        for name in (
            "typing_interval_ms",
            "drip_interval_ms",
            "erosion_interval_ms",
            "erosion_delay_ms",
            "poll_interval_ms",
            "inactivity_threshold_ms",
            "intro_duration_ms",
            "scroll_duration_ms",
            "slide_duration_ms",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.animation_frame_ms <= 0:
            raise ValueError("animation_frame_ms must be positive")
        if self.min_words_for_request < 0:
            raise ValueError("min_words_for_request must not be negative")
        if self.backend not in BACKENDS:
            raise ValueError(f"Invalid backend: {self.backend}")


@dataclass
class Page:
    """A unit of paginated text plus its background reference."""

    index: int
    text: str = ""
    background_ref: str = ""


@dataclass
class GhostResponse:
    """One suggestion being revealed by the drip queue."""

    id: int
    content: str = ""


@dataclass
class GhostWord:
    """A word of a stable suggestion, subject to erosion."""

    id: int
    text: str
    status: str = "visible"  # 'visible', 'eroding', 'erased'
    leading: str = ""  # whitespace before the word in the suggestion


@dataclass
class GhostState:
    """Drip/erosion state of a plain-text suggestion."""

    drip_queue: list[str] = field(default_factory=list)
    responses: list[GhostResponse] = field(default_factory=list)
    words: list[GhostWord] = field(default_factory=list)
    tail: str = ""
    is_stable: bool = False
    display_text: str = ""


@dataclass
class Action:
    """One step of a scripted ghost-text sequence."""

    action: str  # 'type', 'retype', 'delete', 'pause', 'fade'
    delay: float = 0
    text: str | None = None
    count: int | None = None
    to_text: str | None = None
    phase: int | None = None
    style: dict = field(default_factory=dict)
    valid: bool = True


@dataclass
class FadeState:
    """Active fade overlay of a sequence."""

    is_active: bool
    to_text: str
    phase: int | None = None


@dataclass
class ActionSequenceState:
    """Progress through a scripted sequence."""

    actions: list[Action] = field(default_factory=list)
    cursor: int = 0
    ghost_buffer: str = ""
    fade_state: FadeState | None = None


@dataclass
class PageSnapshot:
    """Content of a page captured for a slide animation."""

    index: int
    text: str
    background_ref: str


@dataclass
class PageTransitionState:
    """Page-turn and navigation animation state."""

    mode: str = "cinematicIntro"  # 'cinematicIntro', 'normal'
    in_progress: bool = False
    sliding: bool = False
    slide_x: float = 0.0
    slide_dir: str = "left"  # 'left' (forward), 'right' (backward)
    scroll_progress: float = 0.0
    prev_snapshot: PageSnapshot | None = None
    next_snapshot: PageSnapshot | None = None


@dataclass
class GhostwriterState:
    """Continuation scheduling state for the current page session."""

    last_user_input_time: float = 0.0
    response_queued: bool = False
    last_generated_length: int = 0
    last_ghostwriter_word_count: int = 0


@dataclass(frozen=True)
class SessionView:
    """Everything the view layer needs to draw one frame."""

    page_text: str
    ghost_text: str
    ghost_kind: str | None
    ghost_words: tuple[tuple[str, str], ...]
    ghost_style: dict | None
    fade_phase: int | None
    show_cursor: bool
    typing_allowed: bool
    mode: str
    sliding: bool
    slide_x: float
    slide_dir: str
    scroll_progress: float
    prev_snapshot: PageSnapshot | None
    next_snapshot: PageSnapshot | None
    current_index: int
    page_count: int
    page_label: str
    background: str
