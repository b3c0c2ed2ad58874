import logging
import threading
import time
from collections.abc import Callable
from typing import override

from stack_metronome.domain.interfaces import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class RepeatingTimer(threading.Thread, ScheduledTask):
    """Executa um callback em intervalos fixos em uma thread separada."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        super().__init__(daemon=True)
        self.interval: float = interval
        self.callback: Callable[[], None] = callback
        self._stop_request: threading.Event = threading.Event()

    @override
    def run(self) -> None:
        # Prazos absolutos evitam que o atraso de cada batida se acumule
        next_deadline = time.monotonic() + self.interval
        while not self._stop_request.wait(
            timeout=max(0.0, next_deadline - time.monotonic())
        ):
            try:
                self.callback()
            except Exception:
                logger.exception('Erro no callback agendado')

            # Batidas perdidas por um callback lento são descartadas
            now = time.monotonic()
            next_deadline += self.interval
            while next_deadline <= now:
                next_deadline += self.interval

    @override
    def cancel(self) -> None:
        """Sinalizar a thread para parar. Seguro dentro do próprio callback."""
        self._stop_request.set()

    @property
    def cancelled(self) -> bool:
        return self._stop_request.is_set()


class ThreadingScheduler(Scheduler):
    """Agendador baseado em threads, para uso sem um main loop do GLib."""

    @override
    def schedule_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> RepeatingTimer:
        timer = RepeatingTimer(interval=interval, callback=callback)
        timer.start()
        return timer
