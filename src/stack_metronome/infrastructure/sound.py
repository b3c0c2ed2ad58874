import logging
import threading
from pathlib import Path
from typing import override

import fluidsynth

from stack_metronome.config import (
    ACCENT_NOTE,
    ACCENT_VELOCITY,
    CLICK_GATE_SECONDS,
    PERCUSSION_CHANNEL,
    TICK_NOTE,
    TICK_VELOCITY,
)
from stack_metronome.domain.errors import SoundPlaybackError
from stack_metronome.domain.interfaces import SoundEmitter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FluidSynthEmitter(SoundEmitter):
    """Toca os cliques do metrônomo no canal de percussão do fluidsynth."""

    def __init__(
        self,
        soundfont_path: Path,
        channel: int = PERCUSSION_CHANNEL,
        gate_seconds: float = CLICK_GATE_SECONDS,
    ) -> None:
        self.soundfont_path: Path = soundfont_path
        self.channel: int = channel
        self.gate_seconds: float = gate_seconds
        self.fs: fluidsynth.Synth | None = None
        self.available: bool = True
        self.timers: list[threading.Timer] = []

    def open(self) -> bool:
        """Inicializa o fluidsynth e carrega o SoundFont antes da primeira batida."""
        if not self.available:
            return False

        try:
            self._ensure_synth()
        except SoundPlaybackError:
            self._disable()
            return False
        return True

    @override
    def play(self, is_accent: bool) -> None:
        if not self.available:
            return

        try:
            self._play_click(is_accent)
        except SoundPlaybackError:
            self._disable()
        except Exception:
            logger.exception('Erro ao tocar a batida')

    def _disable(self) -> None:
        logger.exception('Som do metrônomo indisponível')
        self.close()
        self.available = False

    def _play_click(self, is_accent: bool) -> None:
        synth = self._ensure_synth()
        note = ACCENT_NOTE if is_accent else TICK_NOTE
        velocity = ACCENT_VELOCITY if is_accent else TICK_VELOCITY

        synth.noteon(chan=self.channel, key=note, vel=velocity)

        self.timers = [t for t in self.timers if t.is_alive()]

        timer = threading.Timer(
            self.gate_seconds,
            synth.noteoff,
            args=[self.channel, note],
        )
        self.timers.append(timer)
        timer.start()

    def _ensure_synth(self) -> fluidsynth.Synth:
        if self.fs is not None:
            return self.fs

        if not self.soundfont_path.is_file():
            raise SoundPlaybackError(f'SoundFont não encontrado: {self.soundfont_path}')

        synth = fluidsynth.Synth()
        try:
            synth.start()
            if synth.sfload(str(self.soundfont_path)) == -1:
                raise SoundPlaybackError(
                    f'Falha ao carregar o SoundFont: {self.soundfont_path}'
                )
        except SoundPlaybackError:
            synth.delete()
            raise
        except Exception as e:
            synth.delete()
            raise SoundPlaybackError('Erro ao inicializar o FluidSynth') from e

        self.fs = synth
        return synth

    def close(self) -> None:
        """Cancela as notas pendentes e libera o sintetizador."""
        for timer in self.timers:
            timer.cancel()
        self.timers = []

        if self.fs is not None:
            self.fs.delete()
            self.fs = None
