import logging
import threading
from collections.abc import Callable

from stack_metronome.domain.errors import EmptyStackError, InvalidStateError
from stack_metronome.domain.interfaces import ScheduledTask, Scheduler, SoundEmitter
from stack_metronome.domain.models import TempoSegment, TempoStack
from stack_metronome.domain.playback import (
    PlaybackObserver,
    PlaybackSnapshot,
    PlaybackStatus,
)

logger = logging.getLogger(__name__)


class SequencingEngine:
    """Máquina de estados que percorre os segmentos de uma pilha batida a batida.

    Cada segmento armado recebe uma única tarefa repetitiva no `Scheduler`.
    Armar um novo segmento, pausar ou parar cancela a tarefa anterior antes
    de qualquer outra coisa, e batidas de tarefas antigas são descartadas
    pelo número de geração.
    """

    def __init__(
        self,
        sound_emitter: SoundEmitter,
        scheduler: Scheduler,
        strict: bool = False,
    ) -> None:
        self.sound_emitter: SoundEmitter = sound_emitter
        self.scheduler: Scheduler = scheduler
        self.strict: bool = strict

        self._lock: threading.RLock = threading.RLock()
        self._observers: list[PlaybackObserver] = []
        self._task: ScheduledTask | None = None
        self._generation: int = 0

        self.status: PlaybackStatus = PlaybackStatus.STOPPED
        self.active_stack: TempoStack | None = None
        self.current_segment_index: int = 0
        self.current_beat: int = 0
        self.remaining_beats: int = 0

    # Consultas

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def current_segment(self) -> TempoSegment | None:
        stack = self.active_stack
        if stack is None or self.current_segment_index >= len(stack.items):
            return None
        return stack.items[self.current_segment_index]

    @property
    def beat_interval_seconds(self) -> float | None:
        segment = self.current_segment
        return segment.beat_interval_seconds if segment else None

    @property
    def current_measure(self) -> int:
        segment = self.current_segment
        if segment is None:
            return 0
        return self.current_beat // segment.time_signature.beats_per_measure

    @property
    def remaining_measures(self) -> int:
        segment = self.current_segment
        if segment is None:
            return 0
        return self.remaining_beats // segment.time_signature.beats_per_measure

    def snapshot(self) -> PlaybackSnapshot:
        stack = self.active_stack
        segment = self.current_segment
        return PlaybackSnapshot(
            status=self.status,
            stack_name=stack.name if stack else None,
            segment_index=self.current_segment_index,
            segment_count=len(stack.items) if stack else 0,
            bpm=segment.bpm if segment else 0,
            current_beat=self.current_beat,
            remaining_beats=self.remaining_beats,
            current_measure=self.current_measure,
            remaining_measures=self.remaining_measures,
        )

    # Observadores

    def subscribe(self, observer: PlaybackObserver) -> Callable[[], None]:
        """Registra um observador e retorna a função que o remove."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception('Erro no observador de reprodução')

    # Operações públicas

    def start(self, stack: TempoStack) -> None:
        """Inicia a reprodução de uma cópia da pilha a partir do primeiro segmento."""
        if not stack.items:
            raise EmptyStackError(f'A pilha "{stack.name}" não tem segmentos')

        with self._lock:
            self.active_stack = stack.copy()
            self.current_segment_index = 0
            self.current_beat = 0
            self.status = PlaybackStatus.PLAYING
            self._arm_segment()
            logger.info(
                'Reproduzindo "%s" (%d segmentos)',
                stack.name,
                len(stack.items),
            )
            self._notify()

    def pause(self) -> None:
        with self._lock:
            if self.status is not PlaybackStatus.PLAYING:
                self._reject('pause')
                return

            self._cancel_task()
            self.status = PlaybackStatus.PAUSED
            self._notify()

    def resume(self) -> None:
        """Retoma a reprodução reiniciando o segmento atual desde a primeira batida."""
        with self._lock:
            if self.status is not PlaybackStatus.PAUSED or self.current_segment is None:
                self._reject('resume')
                return

            self.status = PlaybackStatus.PLAYING
            # Reinicia o segmento atual; _arm_segment restaura remaining_beats
            self.current_beat = 0
            self._arm_segment()
            self._notify()

    def stop(self) -> None:
        with self._lock:
            self._cancel_task()
            was_stopped = self.status is PlaybackStatus.STOPPED

            self.active_stack = None
            self.current_segment_index = 0
            self.current_beat = 0
            self.remaining_beats = 0
            self.status = PlaybackStatus.STOPPED

            if not was_stopped:
                self._notify()

    # Internos

    def _reject(self, operation: str) -> None:
        message = f'{operation}() inválido no estado {self.status}'
        if self.strict:
            raise InvalidStateError(message)
        logger.debug('Ignorando %s', message)

    def _cancel_task(self) -> None:
        self._generation += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _arm_segment(self) -> None:
        segment = self.current_segment
        if segment is None:
            self.stop()
            return

        self.remaining_beats = segment.total_beats
        self._cancel_task()
        generation = self._generation
        self._task = self.scheduler.schedule_repeating(
            segment.beat_interval_seconds,
            lambda: self._on_beat(generation),
        )
        logger.debug(
            'Segmento %d armado: %d BPM, %d batidas',
            self.current_segment_index,
            segment.bpm,
            segment.total_beats,
        )

    def _on_beat(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self.is_playing:
                return

            segment = self.current_segment
            if segment is None:
                self.stop()
                return

            beats_per_measure = segment.time_signature.beats_per_measure
            is_accent = self.current_beat % beats_per_measure == 0
            try:
                self.sound_emitter.play(is_accent)
            except Exception:
                logger.exception('Erro ao emitir o som da batida')

            self.current_beat += 1
            self.remaining_beats -= 1
            self._notify()

            # Um observador pode ter pausado ou parado a reprodução
            if generation != self._generation or self.remaining_beats > 0:
                return

            self.current_segment_index += 1
            self.current_beat = 0
            if self.current_segment is not None:
                self._arm_segment()
                self._notify()
            else:
                self.stop()
