from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum


class PlaybackStatus(StrEnum):
    STOPPED = 'stopped'
    PLAYING = 'playing'
    PAUSED = 'paused'


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Posição de reprodução enviada aos observadores após cada batida ou transição."""

    status: PlaybackStatus
    stack_name: str | None = None
    segment_index: int = 0
    segment_count: int = 0
    bpm: int = 0
    current_beat: int = 0
    remaining_beats: int = 0
    current_measure: int = 0
    remaining_measures: int = 0


PlaybackObserver = Callable[[PlaybackSnapshot], None]
