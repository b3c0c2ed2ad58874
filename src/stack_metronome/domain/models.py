import copy
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Self

from stack_metronome.config import (
    BPM_STEP,
    DEFAULT_BEATS,
    DEFAULT_BPM,
    MAX_BEATS,
    MAX_BPM,
    MIN_BEATS,
    MIN_BPM,
    SAMPLE_STACK_NAME,
)
from stack_metronome.domain.errors import InvalidSegmentError, PersistenceError


class TimeSignature(StrEnum):
    """Fórmulas de compasso suportadas."""

    TWO_FOUR = '2/4'
    THREE_FOUR = '3/4'
    FOUR_FOUR = '4/4'
    FIVE_FOUR = '5/4'
    SIX_EIGHT = '6/8'

    @property
    def beats_per_measure(self) -> int:
        return self.numerator

    @property
    def numerator(self) -> int:
        return int(self.value.split('/')[0])

    @property
    def denominator(self) -> int:
        return int(self.value.split('/')[1])


def beat_interval_seconds(bpm: int) -> float:
    """Intervalo entre duas batidas, em segundos."""
    if bpm <= 0:
        raise InvalidSegmentError(f'BPM deve ser positivo: {bpm}')
    return 60.0 / bpm


def clamp_bpm(value: int) -> int:
    return max(MIN_BPM, min(value, MAX_BPM))


def clamp_beats(value: int) -> int:
    return max(MIN_BEATS, min(value, MAX_BEATS))


@dataclass(frozen=True)
class TempoSegment:
    """Uma fase da sequência: BPM e fórmula de compasso fixos por um número de batidas."""

    bpm: int
    total_beats: int
    time_signature: TimeSignature = TimeSignature.FOUR_FOUR

    def __post_init__(self) -> None:
        if self.bpm <= 0:
            raise InvalidSegmentError(f'BPM deve ser positivo: {self.bpm}')
        if self.total_beats <= 0:
            raise InvalidSegmentError(
                f'Número de batidas deve ser positivo: {self.total_beats}'
            )

    @property
    def beat_interval_seconds(self) -> float:
        return beat_interval_seconds(self.bpm)

    @property
    def duration_seconds(self) -> float:
        return self.total_beats / (self.bpm / 60.0)

    @property
    def measure_count(self) -> int:
        # Compasso final incompleto é descartado
        return self.total_beats // self.time_signature.beats_per_measure

    @classmethod
    def next_after(cls, segments: list['TempoSegment']) -> 'TempoSegment':
        """Sugere o próximo segmento do editor: BPM anterior + 10, 16 batidas."""
        if not segments:
            return cls(bpm=DEFAULT_BPM, total_beats=DEFAULT_BEATS)
        return cls(
            bpm=clamp_bpm(segments[-1].bpm + BPM_STEP), total_beats=DEFAULT_BEATS
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'bpm': self.bpm,
            'total_beats': self.total_beats,
            'time_signature': str(self.time_signature),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        try:
            return cls(
                bpm=int(data['bpm']),
                total_beats=int(data['total_beats']),
                time_signature=TimeSignature(
                    data.get('time_signature', TimeSignature.FOUR_FOUR)
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f'Segmento inválido: {data!r}') from e


@dataclass
class TempoStack:
    """Sequência nomeada e ordenada de segmentos; a unidade de reprodução."""

    name: str
    items: list[TempoSegment] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def total_beats(self) -> int:
        return sum(item.total_beats for item in self.items)

    @property
    def duration_seconds(self) -> float:
        return sum(item.duration_seconds for item in self.items)

    @property
    def bpm_range(self) -> tuple[int, int] | None:
        """BPM do primeiro e do último segmento, como exibido na lista."""
        if not self.items:
            return None
        return self.items[0].bpm, self.items[-1].bpm

    def copy(self) -> 'TempoStack':
        return copy.deepcopy(self)

    @classmethod
    def sample(cls) -> 'TempoStack':
        """Pilha de aquecimento usada na primeira execução."""
        return cls(
            name=SAMPLE_STACK_NAME,
            items=[
                TempoSegment(bpm=bpm, total_beats=DEFAULT_BEATS)
                for bpm in range(100, 161, BPM_STEP)
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        try:
            return cls(
                id=str(data['id']),
                name=str(data['name']),
                items=[TempoSegment.from_dict(item) for item in data['items']],
            )
        except (KeyError, TypeError) as e:
            raise PersistenceError(f'Pilha inválida: {data!r}') from e
