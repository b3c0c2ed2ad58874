from pathlib import Path

from stack_metronome.application.controller import MetronomeController
from stack_metronome.config import DEFAULT_SOUNDFONT, STACKS_FILE
from stack_metronome.domain.interfaces import Scheduler, SoundEmitter
from stack_metronome.domain.sequencer import SequencingEngine
from stack_metronome.infrastructure.sound import FluidSynthEmitter
from stack_metronome.infrastructure.stack_repository import JsonStackRepository
from stack_metronome.infrastructure.thread_scheduler import ThreadingScheduler


def create_controller(
    soundfont_path: Path = DEFAULT_SOUNDFONT,
    stacks_file: Path = STACKS_FILE,
    scheduler: Scheduler | None = None,
    sound_emitter: SoundEmitter | None = None,
) -> MetronomeController:
    """Monta o controlador com o repositório JSON, o fluidsynth e um agendador.

    Aplicações GTK devem passar um `GLibScheduler` para que as batidas e os
    observadores rodem no main loop.
    """
    if sound_emitter is None:
        emitter = FluidSynthEmitter(soundfont_path=soundfont_path)
        # Carregar o SoundFont agora evita atrasar a primeira batida
        _ = emitter.open()
        sound_emitter = emitter

    engine = SequencingEngine(
        sound_emitter=sound_emitter,
        scheduler=scheduler or ThreadingScheduler(),
    )
    return MetronomeController(
        repository=JsonStackRepository(file_path=stacks_file),
        engine=engine,
    )
