import logging
from collections.abc import Callable
from typing import override

from gi.repository import GLib  # pyright: ignore[reportMissingModuleSource]

from stack_metronome.domain.interfaces import ScheduledTask, Scheduler
from stack_metronome.domain.playback import PlaybackObserver, PlaybackSnapshot

logger = logging.getLogger(__name__)


class GLibTimeout(ScheduledTask):
    """Fonte `GLib.timeout_add` repetitiva no contexto principal."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.callback: Callable[[], None] = callback
        self.source_id: int | None = GLib.timeout_add(
            max(1, round(interval * 1000)), self._on_timeout
        )

    def _on_timeout(self) -> bool:
        try:
            self.callback()
        except Exception:
            logger.exception('Erro no callback agendado')
        # O callback pode ter cancelado esta própria fonte
        return self.source_id is not None

    @override
    def cancel(self) -> None:
        if self.source_id is not None:
            _ = GLib.source_remove(self.source_id)
            self.source_id = None


class GLibScheduler(Scheduler):
    """Agendador que executa as batidas na thread do main loop do GLib."""

    @override
    def schedule_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> GLibTimeout:
        return GLibTimeout(interval=interval, callback=callback)


def idle_dispatch(observer: PlaybackObserver) -> PlaybackObserver:
    """Entrega cada snapshot ao observador na thread principal via `GLib.idle_add`."""

    def dispatch(snapshot: PlaybackSnapshot) -> None:
        _ = GLib.idle_add(_deliver, observer, snapshot)

    return dispatch


def _deliver(observer: PlaybackObserver, snapshot: PlaybackSnapshot) -> bool:
    observer(snapshot)
    return GLib.SOURCE_REMOVE
