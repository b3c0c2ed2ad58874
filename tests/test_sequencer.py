import pytest

from stack_metronome.domain.errors import EmptyStackError, InvalidStateError
from stack_metronome.domain.interfaces import SoundEmitter
from stack_metronome.domain.models import TempoSegment, TempoStack, TimeSignature
from stack_metronome.domain.playback import PlaybackSnapshot, PlaybackStatus
from stack_metronome.domain.sequencer import SequencingEngine


def assert_reset(engine: SequencingEngine) -> None:
    assert engine.status is PlaybackStatus.STOPPED
    assert engine.active_stack is None
    assert engine.current_segment_index == 0
    assert engine.current_beat == 0
    assert engine.remaining_beats == 0


def test_initial_state(engine):
    assert_reset(engine)
    assert engine.current_segment is None
    assert engine.current_measure == 0
    assert engine.remaining_measures == 0


def test_start_arms_first_segment(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)

    assert engine.status is PlaybackStatus.PLAYING
    assert engine.current_segment_index == 0
    assert engine.current_beat == 0
    assert engine.remaining_beats == 4
    assert scheduler.active.interval == pytest.approx(0.6)


def test_start_does_not_tick_immediately(engine, emitter, two_segment_stack):
    engine.start(two_segment_stack)
    assert emitter.sounds == []


def test_start_empty_stack(engine, scheduler):
    with pytest.raises(EmptyStackError):
        engine.start(TempoStack(name='vazia'))

    assert_reset(engine)
    assert scheduler.tasks == []


def test_accents_first_beat_of_each_measure(engine, emitter, scheduler):
    stack = TempoStack(name='longa', items=[TempoSegment(bpm=120, total_beats=10)])
    engine.start(stack)
    scheduler.fire(10)

    assert emitter.sounds == [
        True, False, False, False,
        True, False, False, False,
        True, False,
    ]  # fmt: skip


def test_accents_follow_time_signature(engine, emitter, scheduler):
    stack = TempoStack(
        name='valsa',
        items=[
            TempoSegment(bpm=90, total_beats=6, time_signature=TimeSignature.THREE_FOUR)
        ],
    )
    engine.start(stack)
    scheduler.fire(6)

    assert emitter.sounds == [True, False, False, True, False, False]


def test_segment_transition(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    scheduler.fire(4)

    assert engine.status is PlaybackStatus.PLAYING
    assert engine.current_segment_index == 1
    assert engine.current_beat == 0
    assert engine.remaining_beats == 4
    # A quinta batida usa o intervalo de 120 BPM
    assert scheduler.active.interval == pytest.approx(0.5)
    assert engine.beat_interval_seconds == pytest.approx(0.5)


def test_rearming_cancels_previous_task(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    first_task = scheduler.active
    scheduler.fire(4)

    assert first_task.cancelled
    assert len(scheduler.active_tasks) == 1


def test_stale_task_does_not_fire(engine, emitter, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    first_task = scheduler.active
    scheduler.fire(4)

    first_task.callback()

    assert len(emitter.sounds) == 4
    assert engine.current_beat == 0
    assert engine.remaining_beats == 4


def test_completion_stops(engine, emitter, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    scheduler.fire(8)

    assert_reset(engine)
    assert scheduler.active is None
    assert emitter.sounds == [True, False, False, False, True, False, False, False]


def test_short_segment_still_accents(engine, emitter, scheduler):
    stack = TempoStack(
        name='curta',
        items=[
            TempoSegment(bpm=100, total_beats=2, time_signature=TimeSignature.FIVE_FOUR),
            TempoSegment(bpm=100, total_beats=1),
        ],
    )
    engine.start(stack)
    assert engine.remaining_measures == 0
    scheduler.fire(3)

    assert emitter.sounds == [True, False, True]
    assert engine.status is PlaybackStatus.STOPPED


def test_measures(engine, scheduler):
    engine.start(TempoStack(name='x', items=[TempoSegment(bpm=100, total_beats=10)]))
    assert engine.current_measure == 0
    assert engine.remaining_measures == 2

    scheduler.fire(5)

    assert engine.current_beat == 5
    assert engine.remaining_beats == 5
    assert engine.current_measure == 1
    assert engine.remaining_measures == 1


def test_start_copies_stack(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    two_segment_stack.items.clear()
    two_segment_stack.name = 'editada'

    scheduler.fire(4)

    assert engine.active_stack.name == 'Duas fases'
    assert engine.current_segment.bpm == 120


def test_start_while_playing_restarts(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    scheduler.fire(5)

    engine.start(TempoStack(name='outra', items=[TempoSegment(bpm=60, total_beats=3)]))

    assert engine.current_segment_index == 0
    assert engine.remaining_beats == 3
    assert len(scheduler.active_tasks) == 1
    assert scheduler.active.interval == pytest.approx(1.0)


def test_pause_preserves_position(engine, emitter, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    scheduler.fire(2)
    engine.pause()

    assert engine.status is PlaybackStatus.PAUSED
    assert engine.current_segment_index == 0
    assert engine.current_beat == 2
    assert engine.remaining_beats == 2
    assert scheduler.active is None
    assert len(emitter.sounds) == 2


def test_resume_restarts_current_segment(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    scheduler.fire(6)
    engine.pause()
    engine.resume()

    assert engine.status is PlaybackStatus.PLAYING
    assert engine.current_segment_index == 1
    assert engine.current_beat == 0
    assert engine.remaining_beats == 4
    assert scheduler.active.interval == pytest.approx(0.5)


def test_resume_accents_from_beat_zero(engine, emitter, scheduler):
    engine.start(TempoStack(name='x', items=[TempoSegment(bpm=100, total_beats=8)]))
    scheduler.fire(3)
    engine.pause()
    engine.resume()
    scheduler.fire(1)

    assert emitter.sounds == [True, False, False, True]


def test_pause_when_not_playing_is_noop(engine, scheduler, two_segment_stack):
    engine.pause()
    assert_reset(engine)

    engine.start(two_segment_stack)
    engine.pause()
    engine.pause()
    assert engine.status is PlaybackStatus.PAUSED


def test_resume_when_not_paused_is_noop(engine, scheduler, two_segment_stack):
    engine.resume()
    assert_reset(engine)
    assert scheduler.tasks == []

    engine.start(two_segment_stack)
    scheduler.fire(2)
    engine.resume()
    assert engine.current_beat == 2
    assert len(scheduler.tasks) == 1


def test_strict_engine_rejects_invalid_transitions(emitter, scheduler, two_segment_stack):
    engine = SequencingEngine(sound_emitter=emitter, scheduler=scheduler, strict=True)

    with pytest.raises(InvalidStateError):
        engine.pause()
    with pytest.raises(InvalidStateError):
        engine.resume()

    engine.start(two_segment_stack)
    with pytest.raises(InvalidStateError):
        engine.resume()
    assert engine.status is PlaybackStatus.PLAYING


@pytest.mark.parametrize('state', ['stopped', 'playing', 'paused'])
def test_stop_from_any_state(engine, scheduler, two_segment_stack, state):
    if state != 'stopped':
        engine.start(two_segment_stack)
        scheduler.fire(3)
    if state == 'paused':
        engine.pause()

    engine.stop()
    assert_reset(engine)
    assert scheduler.active is None

    engine.stop()
    assert_reset(engine)


def test_resume_after_stop_is_noop(engine, scheduler, two_segment_stack):
    engine.start(two_segment_stack)
    engine.pause()
    engine.stop()
    engine.resume()

    assert_reset(engine)


class FailingEmitter(SoundEmitter):
    def play(self, is_accent: bool) -> None:
        raise RuntimeError('sem som')


def test_emitter_failure_does_not_stop_playback(scheduler, two_segment_stack):
    engine = SequencingEngine(sound_emitter=FailingEmitter(), scheduler=scheduler)
    engine.start(two_segment_stack)
    scheduler.fire(5)

    assert engine.status is PlaybackStatus.PLAYING
    assert engine.current_segment_index == 1
    assert engine.current_beat == 1


def test_observers_receive_snapshots(engine, scheduler, two_segment_stack):
    snapshots: list[PlaybackSnapshot] = []
    engine.subscribe(snapshots.append)

    engine.start(two_segment_stack)
    assert snapshots[-1] == PlaybackSnapshot(
        status=PlaybackStatus.PLAYING,
        stack_name='Duas fases',
        segment_index=0,
        segment_count=2,
        bpm=100,
        current_beat=0,
        remaining_beats=4,
        current_measure=0,
        remaining_measures=1,
    )

    scheduler.fire(1)
    assert snapshots[-1].current_beat == 1
    assert snapshots[-1].remaining_beats == 3

    scheduler.fire(3)
    assert snapshots[-1].segment_index == 1
    assert snapshots[-1].bpm == 120
    assert snapshots[-1].remaining_beats == 4

    scheduler.fire(4)
    assert snapshots[-1].status is PlaybackStatus.STOPPED
    assert snapshots[-1].stack_name is None


def test_sound_happens_before_notification(engine, emitter, scheduler, two_segment_stack):
    sounds_seen: list[int] = []
    engine.subscribe(lambda _snapshot: sounds_seen.append(len(emitter.sounds)))

    engine.start(two_segment_stack)
    scheduler.fire(2)

    assert sounds_seen == [0, 1, 2]


def test_multiple_observers_and_unsubscribe(engine, two_segment_stack):
    first: list[PlaybackSnapshot] = []
    second: list[PlaybackSnapshot] = []
    unsubscribe = engine.subscribe(first.append)
    engine.subscribe(second.append)

    engine.start(two_segment_stack)
    unsubscribe()
    engine.pause()

    assert len(first) == 1
    assert [s.status for s in second] == [PlaybackStatus.PLAYING, PlaybackStatus.PAUSED]


def test_failing_observer_does_not_break_beats(engine, scheduler, two_segment_stack):
    def broken(_snapshot: PlaybackSnapshot) -> None:
        raise RuntimeError('falhou')

    engine.subscribe(broken)
    engine.start(two_segment_stack)
    scheduler.fire(4)

    assert engine.current_segment_index == 1


def test_observer_can_stop_playback(engine, scheduler, two_segment_stack):
    def stop_on_third_beat(snapshot: PlaybackSnapshot) -> None:
        if snapshot.current_beat == 3:
            engine.stop()

    engine.subscribe(stop_on_third_beat)
    engine.start(two_segment_stack)
    scheduler.fire(3)

    assert_reset(engine)
    assert scheduler.active is None
