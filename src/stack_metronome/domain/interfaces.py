from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from stack_metronome.domain.models import TempoStack


class SoundEmitter(ABC):
    """Toca o som de uma batida. Nunca deve propagar exceções."""

    @abstractmethod
    def play(self, is_accent: bool) -> None:
        """Emite um acento (primeira batida do compasso) ou um tique comum."""


class ScheduledTask(ABC):
    """Tarefa repetitiva agendada que pode ser cancelada."""

    @abstractmethod
    def cancel(self) -> None:
        """Garante que o callback não será mais executado. Idempotente."""


class Scheduler(ABC):
    """Agenda callbacks repetitivos em intervalos fixos."""

    @abstractmethod
    def schedule_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> ScheduledTask:
        """Executa `callback` a cada `interval` segundos, começando após um intervalo."""


class StackRepository(ABC):
    """Armazenamento das pilhas de tempo, na ordem definida pelo usuário."""

    @abstractmethod
    def list(self) -> list[TempoStack]:
        """Retorna cópias das pilhas armazenadas, em ordem."""

    @abstractmethod
    def get(self, stack_id: str) -> TempoStack:
        """Retorna a pilha com o id informado ou lança `KeyError`."""

    @abstractmethod
    def add(self, stack: TempoStack) -> None:
        """Adiciona a pilha ao final da lista."""

    @abstractmethod
    def remove(self, stack_id: str) -> None:
        """Remove a pilha com o id informado ou lança `KeyError`."""

    @abstractmethod
    def reorder(self, from_index: int, to_index: int) -> None:
        """Move a pilha de `from_index` para a posição final `to_index`."""

    @abstractmethod
    def update(self, stack: TempoStack) -> None:
        """Substitui a pilha de mesmo id ou lança `KeyError`."""
