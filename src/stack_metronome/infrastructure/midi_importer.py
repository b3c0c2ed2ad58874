import logging
import math
from pathlib import Path
from typing import Final, NamedTuple

import mido  # pyright: ignore[reportMissingTypeStubs]

from stack_metronome.domain.errors import PersistenceError
from stack_metronome.domain.models import (
    TempoSegment,
    TempoStack,
    TimeSignature,
    clamp_bpm,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPO: Final[int] = 500_000  # 120 BPM, padrão do MIDI


class TempoChange(NamedTuple):
    tick: int
    tempo: int
    time_signature: TimeSignature


class MIDIImporter:
    """Converte o mapa de tempo de um arquivo MIDI em uma pilha de segmentos."""

    def load(self, file_path: Path) -> TempoStack:
        """Carrega um arquivo MIDI e retorna uma pilha com um segmento por mudança."""
        try:
            mid: mido.MidiFile = mido.MidiFile(filename=file_path)
        except (OSError, EOFError, ValueError) as e:
            raise PersistenceError(f'Não foi possível ler {file_path}') from e

        merged = mido.merge_tracks(mid.tracks)
        changes: list[TempoChange] = self._collect_changes(merged)
        end_tick: int = sum(msg.time for msg in merged)

        segments: list[TempoSegment] = []
        for index, change in enumerate(changes):
            is_last = index == len(changes) - 1
            segment_end = end_tick if is_last else changes[index + 1].tick
            span = (segment_end - change.tick) / mid.ticks_per_beat

            # O último clique termina antes do fim da batida; todo segmento tem ao menos uma
            beats = max(1, math.ceil(span) if is_last else round(span))

            segments.append(
                TempoSegment(
                    bpm=clamp_bpm(round(mido.tempo2bpm(change.tempo))),
                    total_beats=beats,
                    time_signature=change.time_signature,
                )
            )

        logger.info('%d segmentos importados de %s', len(segments), file_path)
        return TempoStack(name=file_path.stem, items=segments)

    def _collect_changes(self, track: mido.MidiTrack) -> list[TempoChange]:
        """Percorre a faixa unificada registrando cada mudança de tempo ou compasso."""
        changes = [TempoChange(0, DEFAULT_TEMPO, TimeSignature.FOUR_FOUR)]
        curr_ticks = 0

        for msg in track:
            curr_ticks += msg.time
            last = changes[-1]

            if msg.type == 'set_tempo':
                change = last._replace(tick=curr_ticks, tempo=msg.tempo)
            elif msg.type == 'time_signature':
                change = last._replace(
                    tick=curr_ticks,
                    time_signature=self._signature_for(
                        msg.numerator, msg.denominator
                    ),
                )
            else:
                continue

            if (change.tempo, change.time_signature) == (
                last.tempo,
                last.time_signature,
            ):
                continue
            if change.tick == last.tick:
                changes[-1] = change
            else:
                changes.append(change)

        return changes

    def _signature_for(self, numerator: int, denominator: int) -> TimeSignature:
        label = f'{numerator}/{denominator}'
        try:
            return TimeSignature(label)
        except ValueError:
            logger.warning('Compasso %s não suportado, usando 4/4', label)
            return TimeSignature.FOUR_FOUR
