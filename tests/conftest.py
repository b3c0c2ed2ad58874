from collections.abc import Callable

import pytest

from stack_metronome.domain.interfaces import ScheduledTask, Scheduler, SoundEmitter
from stack_metronome.domain.models import TempoSegment, TempoStack, TimeSignature
from stack_metronome.domain.sequencer import SequencingEngine


class ManualTask(ScheduledTask):
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Agendador de teste: as batidas só acontecem quando `fire()` é chamado."""

    def __init__(self) -> None:
        self.tasks: list[ManualTask] = []

    def schedule_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> ManualTask:
        task = ManualTask(interval, callback)
        self.tasks.append(task)
        return task

    @property
    def active_tasks(self) -> list[ManualTask]:
        return [task for task in self.tasks if not task.cancelled]

    @property
    def active(self) -> ManualTask | None:
        active = self.active_tasks
        assert len(active) <= 1
        return active[0] if active else None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            task = self.active
            assert task is not None, 'nenhuma tarefa agendada'
            task.callback()


class RecordingEmitter(SoundEmitter):
    def __init__(self) -> None:
        self.sounds: list[bool] = []

    def play(self, is_accent: bool) -> None:
        self.sounds.append(is_accent)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def engine(emitter: RecordingEmitter, scheduler: ManualScheduler) -> SequencingEngine:
    return SequencingEngine(sound_emitter=emitter, scheduler=scheduler)


@pytest.fixture
def two_segment_stack() -> TempoStack:
    return TempoStack(
        name='Duas fases',
        items=[
            TempoSegment(bpm=100, total_beats=4, time_signature=TimeSignature.FOUR_FOUR),
            TempoSegment(bpm=120, total_beats=4, time_signature=TimeSignature.FOUR_FOUR),
        ],
    )
