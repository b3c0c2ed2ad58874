from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, override

from stack_metronome.domain.errors import PersistenceError
from stack_metronome.domain.interfaces import StackRepository
from stack_metronome.domain.models import TempoStack

logger = logging.getLogger(__name__)


class JsonStackRepository(StackRepository):
    """Mantém as pilhas em memória e as grava em um arquivo JSON a cada alteração."""

    def __init__(self, file_path: Path) -> None:
        self.file_path: Path = file_path
        self._stacks: list[TempoStack] = self._load()

    @override
    def list(self) -> list[TempoStack]:
        return [stack.copy() for stack in self._stacks]

    @override
    def get(self, stack_id: str) -> TempoStack:
        return self._stacks[self._index_of(stack_id)].copy()

    @override
    def add(self, stack: TempoStack) -> None:
        self._stacks.append(stack.copy())
        self.save()

    @override
    def remove(self, stack_id: str) -> None:
        del self._stacks[self._index_of(stack_id)]
        self.save()

    @override
    def reorder(self, from_index: int, to_index: int) -> None:
        count = len(self._stacks)
        if not (0 <= from_index < count and 0 <= to_index < count):
            raise IndexError(
                f'Posição inválida: {from_index} -> {to_index} ({count} pilhas)'
            )
        stack = self._stacks.pop(from_index)
        self._stacks.insert(to_index, stack)
        self.save()

    @override
    def update(self, stack: TempoStack) -> None:
        self._stacks[self._index_of(stack.id)] = stack.copy()
        self.save()

    def _index_of(self, stack_id: str) -> int:
        for index, stack in enumerate(self._stacks):
            if stack.id == stack_id:
                return index
        raise KeyError(stack_id)

    def _load(self) -> list[TempoStack]:
        """Carrega as pilhas do disco, usando a pilha de exemplo na primeira execução."""
        if not self.file_path.exists():
            logger.info('Nenhuma pilha salva em %s, usando exemplo', self.file_path)
            return [TempoStack.sample()]

        try:
            return self._decode(self.file_path.read_bytes())
        except (OSError, PersistenceError):
            logger.exception('Erro ao carregar pilhas de %s', self.file_path)
            return [TempoStack.sample()]

    def _decode(self, content: bytes) -> list[TempoStack]:
        try:
            data: Any = json.loads(content.decode('utf-8'))
            return [TempoStack.from_dict(item) for item in data['stacks']]
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise PersistenceError('Arquivo de pilhas inválido') from e

    def save(self) -> None:
        """Grava as pilhas no disco. Falhas são apenas registradas no log."""
        data = {'stacks': [stack.to_dict() for stack in self._stacks]}
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text(
                json.dumps(data, ensure_ascii=False, indent=2), encoding='utf-8'
            )
        except (OSError, TypeError, ValueError):
            logger.exception('Erro ao salvar pilhas em %s', self.file_path)
