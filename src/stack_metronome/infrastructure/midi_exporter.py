import logging
import math
from pathlib import Path

from midiutil import MIDIFile

from stack_metronome.config import (
    ACCENT_NOTE,
    ACCENT_VELOCITY,
    PERCUSSION_CHANNEL,
    TICK_NOTE,
    TICK_VELOCITY,
)
from stack_metronome.domain.models import TempoStack

logger = logging.getLogger(__name__)

# Duração de cada clique, em batidas
CLICK_DURATION = 0.25


class MIDIExporter:
    """Gera uma faixa de cliques em MIDI a partir de uma pilha de tempo."""

    def save(self, stack: TempoStack, file_path: Path) -> None:
        """Criar o objeto `MIDIFile` e o salvar no disco."""
        midi = MIDIFile(1, deinterleave=False)

        track = 0
        midi.addTrackName(track=track, time=0, trackName=stack.name)

        segment_start = 0.0
        for segment in stack.items:
            signature = segment.time_signature

            # Mudanças de tempo/compasso no início de cada segmento
            midi.addTempo(track=track, time=segment_start, tempo=segment.bpm)
            midi.addTimeSignature(
                track=track,
                time=segment_start,
                numerator=signature.numerator,
                denominator=int(math.log2(signature.denominator)),
                clocks_per_tick=24,
            )

            for beat in range(segment.total_beats):
                is_accent = beat % signature.beats_per_measure == 0
                midi.addNote(
                    track=track,
                    channel=PERCUSSION_CHANNEL,
                    pitch=ACCENT_NOTE if is_accent else TICK_NOTE,
                    time=segment_start + beat,
                    duration=CLICK_DURATION,
                    volume=ACCENT_VELOCITY if is_accent else TICK_VELOCITY,
                )

            segment_start += segment.total_beats

        with file_path.open('wb') as output_file:
            midi.writeFile(output_file)

        logger.info('Pilha "%s" exportada para %s', stack.name, file_path)
