from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


class PublishSource(str, Enum):
    ENGINE = "engine"
    ECHO = "echo"
    BACKSPACE = "backspace"


@dataclass(frozen=True)
class KeypressEvent:
    elapsed_time: float
    char_index: int
    is_correct: bool


@dataclass(frozen=True)
class CharacterTiming:
    index: int
    char: str
    elapsed_time: float
    is_correct: bool


@dataclass(frozen=True)
class GraphPoint:
    time: int
    wpm: float
    raw: float


@dataclass(frozen=True)
class ErrorMarker:
    time: int
    wpm: float


@dataclass(frozen=True)
class EngineSample:
    time: float
    wpm: float
    raw: float
    is_error: bool


@dataclass(frozen=True)
class Stats:
    wpm: float = 0.0
    raw_wpm: float = 0.0
    accuracy: float = 100.0
    time: float = 0.0
    correct_chars: int = 0
    incorrect_chars: int = 0
    total_chars: int = 0
    current_streak: int = 0
    best_streak: int = 0


@dataclass(frozen=True)
class Published:
    """One authoritative (input, accuracy, mistakes) triple from the engine."""
    generation: int
    input: str
    accuracy: float
    mistakes: int
    source: PublishSource = PublishSource.ENGINE


@dataclass(frozen=True)
class FrozenTimeline:
    timings: Tuple[CharacterTiming, ...] = ()
    keypresses: Tuple[KeypressEvent, ...] = ()


@dataclass(frozen=True)
class GraphResult:
    points: Tuple[GraphPoint, ...] = ()
    markers: Tuple[ErrorMarker, ...] = ()
    synthetic: bool = False


@dataclass(frozen=True)
class SessionResult:
    stats: Stats
    text: str
    user_input: str
    attribution: str
    timeline: FrozenTimeline
    samples: Tuple[EngineSample, ...]
    graph: GraphResult


@dataclass
class Session:
    target_text: str = ""
    attribution: str = ""
    category: str = ""
    current_input: str = ""
    started_at: Optional[float] = None
    is_running: bool = False
    state: SessionState = SessionState.IDLE
    stats: Stats = field(default_factory=Stats)
    engine_accuracy: float = 100.0
    engine_mistakes: int = 0

    def reset(self, text: str = "", attribution: str = "", category: str = ""):
        self.target_text = text
        self.attribution = attribution
        self.category = category
        self.current_input = ""
        self.started_at = None
        self.is_running = False
        self.stats = Stats(total_chars=len(text))
        self.engine_accuracy = 100.0
        self.engine_mistakes = 0

    def mark_started(self, now: float) -> bool:
        """Record the first keystroke. Returns True only the first time."""
        if self.started_at is not None:
            return False
        self.started_at = now
        self.is_running = True
        return True

    def elapsed(self, now: float) -> float:
        if self.started_at is None:
            return 0.0
        return max(0.0, now - self.started_at)
